"""
Data layer for the metrics dashboards.

Modules
-------
api_client.py   JSON HTTP client, error types and the fail-fast parallel fetch.
models.py       Pydantic models for every backend payload.
parsing.py      Payload validation shared by the endpoint modules.
sales.py        Sales API endpoints mapped onto typed models.
stocks.py       Stock API endpoints mapped onto typed models.
"""
