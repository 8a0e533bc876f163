"""Start-up connectivity check against the Appwrite endpoint."""

import logging

import httpx

logger = logging.getLogger(__name__)


async def ping_appwrite(endpoint: str, project_id: str, timeout: float = 5.0) -> bool:
  """Ping Appwrite once. Failures are logged and reported as False."""
  url = f"{endpoint.rstrip('/')}/ping"
  try:
    async with httpx.AsyncClient(timeout=timeout) as client:
      response = await client.get(url, headers={"X-Appwrite-Project": project_id})
      response.raise_for_status()
    logger.info(f"Appwrite reachable at {endpoint}")
    return True
  except httpx.HTTPError as e:
    logger.warning(f"Appwrite ping failed: {e}")
    return False
