"""DOM snapshot fetching and analysis."""

from autobdd.dom.analyzer import DomAnalyzer
from autobdd.dom.fetcher import DomFetcher, HttpDomFetcher, StaticDomFetcher

__all__ = [
    "DomAnalyzer",
    "DomFetcher",
    "HttpDomFetcher",
    "StaticDomFetcher",
]
