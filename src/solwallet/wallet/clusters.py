"""Solana cluster definitions and explorer links."""

from __future__ import annotations

from dataclasses import dataclass

EXPLORER_URL = "https://explorer.solana.com"


@dataclass(frozen=True)
class Cluster:
    """A Solana network."""

    name: str
    rpc_url: str
    airdrop: bool


CLUSTERS: dict[str, Cluster] = {
    "mainnet-beta": Cluster(
        name="mainnet-beta",
        rpc_url="https://api.mainnet-beta.solana.com",
        airdrop=False,
    ),
    "devnet": Cluster(
        name="devnet",
        rpc_url="https://api.devnet.solana.com",
        airdrop=True,
    ),
    "testnet": Cluster(
        name="testnet",
        rpc_url="https://api.testnet.solana.com",
        airdrop=True,
    ),
}


def get_cluster(name: str) -> Cluster:
    """Get a cluster by name. Raises ``KeyError`` if not found."""
    if name not in CLUSTERS:
        raise KeyError(
            f"Unknown cluster '{name}'. Available: {list_cluster_names()}"
        )
    return CLUSTERS[name]


def list_cluster_names() -> list[str]:
    return list(CLUSTERS.keys())


def _explorer_link(path: str, cluster: str) -> str:
    url = f"{EXPLORER_URL}/{path}"
    if cluster != "mainnet-beta":
        url += f"?cluster={cluster}"
    return url


def transaction_url(signature: str, cluster: str) -> str:
    return _explorer_link(f"tx/{signature}", cluster)


def account_url(address: str, cluster: str) -> str:
    """Explorer page listing the transactions of *address*."""
    return _explorer_link(f"address/{address}", cluster)
