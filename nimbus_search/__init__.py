"""nimbus-search: asynchronous search orchestration and result streaming."""

__version__ = "0.1.0"
