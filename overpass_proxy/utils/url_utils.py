from urllib.parse import urlsplit


def endpoint_host(url: str) -> str:
    """Return only the network location of *url* (host and optional port).

    Scheme, path and query string are dropped so diagnostics never echo
    anything beyond the mirror's name.

    Example: ``"https://overpass-api.de/api/interpreter"`` → ``"overpass-api.de"``
    """
    netloc = urlsplit(url).netloc
    if netloc:
        return netloc.rsplit("@", 1)[-1]
    # No scheme: treat the first path segment as the host.
    return url.split("/", 1)[0]
