"""CSV ingestion for copy-trading exports.

Submodules: normalize (shared field cleanup), trades (dialect detection and
tabular rows), vertical (label/value dump exports), funding (funding fee
exports) and reader (file intake and format rejection).
"""
