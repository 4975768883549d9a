"""Known client versions and lookups of the latest GitHub releases."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass
from typing import Callable

import requests

STARKNODE_VERSION = "0.0.1"
LATEST_GETH_VERSION = "1.15.10"
LATEST_RETH_VERSION = "1.3.4"
LATEST_LIGHTHOUSE_VERSION = "7.0.1"
LATEST_PRYSM_VERSION = "v5.1.4"
LATEST_JUNO_VERSION = "0.14.6"

GITHUB_API = "https://api.github.com"

_REPOS = {
    "geth": "ethereum/go-ethereum",
    "reth": "paradigmxyz/reth",
    "lighthouse": "sigp/lighthouse",
    "prysm": "prysmaticlabs/prysm",
    "juno": "NethermindEth/juno",
}

_TIMEOUT = 30


@dataclass
class GitHubRelease:
    """The parts of a GitHub release that matter here."""

    tag_name: str = ""
    name: str = ""


@dataclass
class ClientVersions:
    """One version string per supported client."""

    geth: str = ""
    reth: str = ""
    lighthouse: str = ""
    prysm: str = ""
    juno: str = ""


def get_static_versions() -> ClientVersions:
    """Return the versions built into the toolkit."""
    return ClientVersions(
        geth=LATEST_GETH_VERSION,
        reth=LATEST_RETH_VERSION,
        lighthouse=LATEST_LIGHTHOUSE_VERSION,
        prysm="latest",
        juno=LATEST_JUNO_VERSION,
    )


def fetch_github_release(client_name: str, repo: str) -> str:
    """Fetch the latest release version of ``repo`` for ``client_name``.

    Raises requests.RequestException on transport or HTTP errors and
    ValueError when the response cannot be decoded.
    """
    url = f"{GITHUB_API}/repos/{repo}/releases/latest"
    resp = requests.get(url, timeout=_TIMEOUT)
    if resp.status_code != 200:
        raise requests.HTTPError(
            f"GitHub API returned status {resp.status_code}", response=resp
        )
    data = resp.json()
    if not isinstance(data, dict):
        raise ValueError("failed to decode response: expected an object")
    release = GitHubRelease(
        tag_name=str(data.get("tag_name") or ""),
        name=str(data.get("name") or ""),
    )

    if client_name == "prysm" and release.name:
        return release.name
    if client_name == "juno":
        return release.tag_name
    return release.tag_name.removeprefix("v")


def fetch_latest_geth_version() -> str:
    return fetch_github_release("geth", _REPOS["geth"])


def fetch_latest_reth_version() -> str:
    return fetch_github_release("reth", _REPOS["reth"])


def fetch_latest_lighthouse_version() -> str:
    return fetch_github_release("lighthouse", _REPOS["lighthouse"])


def fetch_latest_prysm_version() -> str:
    return fetch_github_release("prysm", _REPOS["prysm"])


def fetch_latest_juno_version() -> str:
    return fetch_github_release("juno", _REPOS["juno"])


_FETCHERS: dict[str, Callable[[], str]] = {
    "geth": fetch_latest_geth_version,
    "reth": fetch_latest_reth_version,
    "lighthouse": fetch_latest_lighthouse_version,
    "prysm": fetch_latest_prysm_version,
    "juno": fetch_latest_juno_version,
}


def fetch_online_version(client: str) -> str:
    """Fetch the latest released version of one client."""
    try:
        fetcher = _FETCHERS[client]
    except KeyError:
        raise ValueError(f"unsupported client: {client}") from None
    return fetcher()


def fetch_latest_versions() -> ClientVersions:
    """Fetch every client's latest version, falling back to built-in ones."""
    found: dict[str, str] = {}
    errors: list[str] = []
    with ThreadPoolExecutor(max_workers=len(_REPOS)) as pool:
        futures = {
            client: pool.submit(fetch_github_release, client, repo)
            for client, repo in _REPOS.items()
        }
        for client, future in futures.items():
            try:
                found[client] = future.result()
            except (requests.RequestException, ValueError) as exc:
                errors.append(f"{client}: {exc}")

    if errors:
        print(
            "Warning: Some version fetches failed, using fallback versions: "
            + ", ".join(errors)
        )

    merged = asdict(get_static_versions())
    merged.update(found)
    return ClientVersions(**merged)