"""
Google Secret Manager access for APNs signing keys
"""

from google.cloud import secretmanager

from .logger import get_logger

logger = get_logger(__name__)


class SecretStore:
    """Reads secret payloads from Google Secret Manager"""

    def __init__(self, project_id: str):
        self.project_id = project_id
        self.sm_client = secretmanager.SecretManagerServiceClient()

    def get_secret(self, secret_name: str, version: str = "latest") -> str:
        """Fetch secret from Google Secret Manager"""
        try:
            name = f"projects/{self.project_id}/secrets/{secret_name}/versions/{version}"
            response = self.sm_client.access_secret_version(request={"name": name})
            secret_value = response.payload.data.decode("UTF-8")
            logger.info(f"✅ Retrieved secret: {secret_name}")
            return secret_value
        except Exception as e:
            logger.error(f"❌ Error fetching secret {secret_name}: {e}")
            raise
