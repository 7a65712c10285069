import ipaddress

from ittools.exceptions import ToolUserError
from ittools.registry import ToolRegistrar
from ittools.schemas.tool import ToolDescriptor


def ipv4_subnet(cidr: str) -> dict:
    try:
        network = ipaddress.IPv4Network(cidr, strict=False)
    except ValueError as e:
        raise ToolUserError(f"Invalid IPv4 CIDR: {e}") from None
    hosts = network.num_addresses - 2 if network.prefixlen < 31 else network.num_addresses
    return {
        "network": str(network.network_address),
        "broadcast": str(network.broadcast_address),
        "netmask": str(network.netmask),
        "prefix": network.prefixlen,
        "usable_hosts": hosts,
    }


def register_ipv4_subnet(registrar: ToolRegistrar) -> None:
    registrar.register_tool(
        "ipv4-subnet",
        ToolDescriptor(
            description="Calculate IPv4 subnet details from CIDR notation",
            input_schema={"cidr": "short_text"},
        ),
        ipv4_subnet,
    )
