"""
Privacy enforcement for published constellation data.

This package provides:
- visibility tier resolution (curation overrides + allowlist, most-restrictive-wins)
- person-name rewriting against the allowlist
- minors policy (last-name stripping, blocked patterns, no location)
- GPS precision reduction
- image metadata stripping with independent re-verification

Nothing here writes the allowlist or curation documents.
"""
