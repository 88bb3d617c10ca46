class DiscoveryError(Exception):
    pass


class AdapterUnreachableError(DiscoveryError):
    """RPC endpoint could not be reached — fails the whole network scan."""


class RpcTimeoutError(AdapterUnreachableError):
    pass


class DecodeError(DiscoveryError):
    """Payload shape unrecognized or undecodable — one log/event is dropped."""


class MetadataLookupError(DiscoveryError):
    """Token introspection failed or returned empty — one candidate is dropped."""
