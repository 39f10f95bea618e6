"""Statement file ingestion: MT940 bank statements and VAN credit feeds."""
