import logging

log = logging.getLogger(__name__)

CHAIN_SEPARATOR = "#"


def is_cyclic_chain(chain: str, depth: int) -> bool:
    """
    Check if a '#'-joined property chain (e.g. "pet#owner#pet") repeats a name.
    Chains with fewer than depth segments are never reported as cyclic.
    Names are compared case-insensitively.
    """
    properties = chain.split(CHAIN_SEPARATOR)

    if len(properties) < depth:
        return False

    for i in range(len(properties) - 1):
        for j in range(i + 1, len(properties)):
            if properties[i].lower() == properties[j].lower():
                log.debug("Found cyclic dependencies for %s", chain)
                return True

    return False
