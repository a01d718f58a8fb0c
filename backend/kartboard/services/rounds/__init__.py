"""Round scoring and tie-resolution engine.

Pure(ish) rules that turn finish positions into points, decide when a
round is complete or tied, and finalize it (via an overtime race when
needed).
"""
