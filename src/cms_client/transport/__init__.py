"""HTTP transport for the CMS API."""

from __future__ import annotations

from cms_client.transport.http import RequestTransport, quote_segment

__all__ = ["RequestTransport", "quote_segment"]
