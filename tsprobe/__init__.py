"""
tsprobe: Public API introspection for TypeScript packages.

tsprobe reads a package's type declaration files and lists what it exports:
- Locate the declaration entry point across npm, pnpm and plain layouts
- Extract exported functions, classes, types and constants with signatures
- Cache results on disk and filter them by pattern

Usage:
    from tsprobe.core import IntrospectionOptions
    from tsprobe.core.introspector import introspect_package

    records = introspect_package("zod", IntrospectionOptions(search_term="string"))
    for record in records:
        print(record.name, record.type_signature)
"""

import logging

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())
