from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from itertools import islice
from typing import Callable, Iterable, Iterator, List, Tuple

from domain.errors import ResolveError, TracerouteError
from domain.models import TraceHop
from domain.ports import Resolver


@dataclass(frozen=True)
class TraceFraming:
    """Moldura da saída do utilitário de trace numa plataforma."""
    argv: Tuple[str, ...]      # destino é acrescentado no fim
    banner_lines: int          # linhas de cabeçalho a pular
    field_index: int           # posição (split por espaço) do endereço do hop


# Faixas não públicas além de loopback / link-local
_NON_PUBLIC_NETS = tuple(
    ipaddress.ip_network(n)
    for n in (
        "10.0.0.0/8",
        "172.16.0.0/12",
        "192.168.0.0/16",
        "100.64.0.0/10",   # CGNAT
        "fc00::/7",        # ULA
    )
)


def is_public_address(addr: str) -> bool:
    try:
        ip = ipaddress.ip_address(addr)
    except ValueError:
        return False
    if ip.is_loopback or ip.is_link_local or ip.is_unspecified or ip.is_multicast:
        return False
    return not any(ip.version == n.version and ip in n for n in _NON_PUBLIC_NETS)


def parse_trace_lines(lines: Iterable[str], framing: TraceFraming, resolver: Resolver) -> Iterator[TraceHop]:
    """
    Linhas do trace -> TraceHop.
    Poucos campos ou token não resolvível (ex.: '*', mensagem de timeout localizada)
    viram hop sem resposta, nunca erro.
    """
    for line in islice(lines, framing.banner_lines, None):
        fields = line.split()
        if len(fields) <= framing.field_index:
            yield TraceHop(address=None)
            continue

        token = fields[framing.field_index]
        try:
            resolver.resolve(token)
        except ResolveError:
            yield TraceHop(address=None)
            continue
        yield TraceHop(address=token)


def select_hops(
    hops: Iterable[TraceHop],
    resolver: Resolver,
    is_public: Callable[[str], bool] = is_public_address,
) -> Tuple[str, str, str]:
    """
    1º alvo: primeiro hop que responde.
    2º e 3º: os dois próximos hops que respondem com endereço público.
    """
    it = iter(hops)

    first = None
    for hop in it:
        if hop.responded:
            first = hop.address
            break
    if first is None:
        raise TracerouteError("unexpected end of traceroute output")

    public: List[str] = []
    for hop in it:
        if not hop.responded:
            continue
        try:
            addr = resolver.resolve(hop.address)[0]
        except ResolveError:
            continue
        if not is_public(addr):
            continue
        public.append(hop.address)
        if len(public) == 2:
            break

    if len(public) < 2:
        raise TracerouteError("unexpected end of traceroute output")

    return (first, public[0], public[1])
