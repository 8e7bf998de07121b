"""Remote sources: npm registry metadata and documentation content."""

from .context7 import Context7Client, DocsResult
from .registry import RegistryClient

__all__ = ["Context7Client", "DocsResult", "RegistryClient"]
