"""Package version.

Bump rules:
- Patch (0.1.x): bug fixes
- Minor (0.x.0): new commands, options or response fields
- Major (x.0.0): incompatible changes to the wire protocol
"""

VERSION = "0.1.0"
