from setuptools import find_packages, setup

setup(
    name="azgraph",
    version="1.0.0",
    description="Azure resource ingestion into an entity/relationship graph",
    license="MIT",
    packages=find_packages(exclude=["tests*"]),
    python_requires=">=3.9",
    install_requires=[
        "pyyaml>=6.0.1",
        "click>=8.1.0",
        "rich>=13.0.0",
        "jinja2>=3.1.0",
        "httpx>=0.25.0",
        "azure-core>=1.29.0",
        "azure-identity>=1.15.0",
        "azure-mgmt-resource>=23.0.0,<26.0.0",
        "azure-mgmt-network>=25.0.0",
        "azure-mgmt-keyvault>=10.3.0",
        "azure-mgmt-monitor>=6.0.0",
        "azure-mgmt-eventgrid>=10.2.0",
        "azure-mgmt-advisor>=9.0.0",
        "azure-mgmt-managementgroups>=1.0.0,<2.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
        ]
    },
    entry_points={
        "console_scripts": [
            "azgraph=azgraph.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: System Administrators",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: System :: Systems Administration",
    ],
)
