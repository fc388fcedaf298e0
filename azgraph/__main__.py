from azgraph.cli import main

main()
