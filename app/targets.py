from __future__ import annotations

import ipaddress
from typing import Callable, List, Sequence

from domain.errors import ResolveError
from domain.models import Target, TargetKind
from domain.ports import Resolver


def pick_address(host: str, addresses: Sequence[str], *, ipv4: bool = False, ipv6: bool = False) -> str:
    if ipv4:
        wanted = [a for a in addresses if ipaddress.ip_address(a).version == 4]
        if not wanted:
            raise ResolveError(f"Could not resolve '{host}' to IPv4")
        return wanted[0]
    if ipv6:
        wanted = [a for a in addresses if ipaddress.ip_address(a).version == 6]
        if not wanted:
            raise ResolveError(f"Could not resolve '{host}' to IPv6")
        return wanted[0]
    if not addresses:
        raise ResolveError(f"Could not resolve '{host}' to IP")
    return addresses[0]


def build_targets(
    entries: Sequence[str],
    *,
    cmd: bool,
    resolver: Resolver,
    ipv4: bool = False,
    ipv6: bool = False,
) -> List[Target]:
    """
    Monta a lista de alvos na ordem dada (índice estável durante a execução).
    Hosts são resolvidos aqui; falha de resolução é fatal (ResolveError).
    """
    targets: List[Target] = []
    for idx, entry in enumerate(entries):
        if cmd:
            targets.append(Target(index=idx, name=entry, kind=TargetKind.COMMAND))
            continue

        addr = pick_address(entry, resolver.resolve(entry), ipv4=ipv4, ipv6=ipv6)
        targets.append(
            Target(index=idx, name=f"{entry} ({addr})", kind=TargetKind.HOST, address=addr)
        )
    return targets


def resolve_entries(
    explicit: Sequence[str],
    discover: Callable[[], Sequence[str]],
) -> List[str]:
    # sem alvos explícitos: os três hops escolhidos pelo traceroute
    if explicit:
        return list(explicit)
    return list(discover())
