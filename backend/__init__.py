"""Backend — FastAPI application over the proof pipeline and ledger client."""
