"""
hookmap Application Package

Directory Structure:
├── domain/            # Pure graph logic: definition model, constraints,
│                      # dataflow inference, deploy fingerprint, change records
├── application/       # Editor session, autosave, workspace, usage polling
├── backend/           # Remote graph backend port, httpx client, in-memory backend
├── registry/          # Node type metadata and the add-node palette
├── routers/           # FastAPI route handlers
├── schemas/           # Pydantic models for API requests/responses
│   └── api_schemas.py # HTTP request/response structures
├── scheduling.py      # Cancellable timers (asyncio and manual clock)
└── config.py          # Application configuration

Graph Types Clarification:
1. **Graph records** (hookmap.domain.entities): what the backend stores, status included
2. **Graph definitions**: the data-only {nodes, edges} snapshot that is saved, compared
   and fingerprinted; live editor callbacks never appear in it
"""
