"""
Redaction helpers for recorded HTTP fixtures (HAR-shaped JSON).

Entries look like::

    {"request": {"url": ..., "postData": {"text": ...}},
     "response": {"content": {"text": ...}}}

Login exchanges lose their request body and access token; request paths
have the directory and subscription ids swapped for placeholders so
recordings match across tenants.
"""
import json
import re
from typing import Any, Callable, Dict, Optional
from urllib.parse import urlsplit, urlunsplit

from azgraph.config import IntegrationConfig

REDACTED = "[REDACTED]"
_LOGIN_RE = re.compile(r"login")


def _load_json(text: str) -> Optional[Any]:
    try:
        return json.loads(text)
    except ValueError:
        return None


def mutate_access_token(entry: Dict[str, Any], mutation: Callable[[str], str]) -> None:
    request = entry.get("request") or {}
    content = (entry.get("response") or {}).get("content") or {}
    text = content.get("text")
    if not text:
        return

    body = _load_json(text)
    if body is None:
        return
    if not (_LOGIN_RE.search(request.get("url") or "") and request.get("postData")):
        return

    request["postData"]["text"] = REDACTED
    if isinstance(body, dict) and body.get("access_token"):
        body["access_token"] = mutation(body["access_token"])
        content["text"] = json.dumps(body, separators=(",", ":"))


def redact_recording_entry(entry: Dict[str, Any]) -> Dict[str, Any]:
    mutate_access_token(entry, lambda _: REDACTED)
    return entry


def default_should_replace_subscription_id(pathname: str) -> bool:
    """
    False for ``//subscriptions/...`` paths: those embed an exact resource id
    taken from an earlier response. Any other subscription id in a path came
    from the instance config.
    """
    return not pathname.startswith("//subscriptions")


def normalize_request_path(
    pathname: str,
    config: IntegrationConfig,
    should_replace_subscription_id: Callable[[str], bool] = default_should_replace_subscription_id,
) -> str:
    if config.directory_id:
        pathname = pathname.replace(config.directory_id, "directory-id", 1)
    if should_replace_subscription_id(pathname):
        pathname = pathname.replace(config.subscription_id or "subscription-id", "subscription-id", 1)
    return pathname


def normalize_request_url(
    url: str,
    config: IntegrationConfig,
    should_replace_subscription_id: Callable[[str], bool] = default_should_replace_subscription_id,
) -> str:
    parts = urlsplit(url)
    path = normalize_request_path(parts.path, config, should_replace_subscription_id)
    return urlunsplit(parts._replace(path=path))


def redact_recording_file(path: str, config: IntegrationConfig) -> int:
    """Redact every entry of the recording at ``path`` in place; returns the entry count."""
    with open(path, "r", encoding="utf-8") as fh:
        har = json.load(fh)

    entries = (har.get("log") or {}).get("entries") or []
    for entry in entries:
        redact_recording_entry(entry)
        request = entry.get("request") or {}
        if request.get("url"):
            request["url"] = normalize_request_url(request["url"], config)

    with open(path, "w", encoding="utf-8", newline="\n") as fh:
        json.dump(har, fh, indent=2)
    return len(entries)
