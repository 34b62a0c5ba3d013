"""
LLM Fallback Layer for the personal automation environment.

Routes chat-style prompts to local and cloud LLM providers and keeps them
flowing when a backend fails:
- Error classification (rate limit, overload, auth, server, network, validation)
- Fallback decisions (retry in place, switch model, switch provider)
- Chain resolution over per-provider model chains and a global priority order
- A request orchestrator returning a structured outcome with the full fallback path

Architecture: FastAPI surface + request orchestrator + httpx provider clients
"""

__version__ = "0.1.0"
