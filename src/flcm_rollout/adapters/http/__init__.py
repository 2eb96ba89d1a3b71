"""HTTP adapter – async httpx client used by the remote config poller."""
from flcm_rollout.adapters.http.client import HttpClient, HttpxHttpClient, JsonDocument

__all__ = ["HttpClient", "HttpxHttpClient", "JsonDocument"]
