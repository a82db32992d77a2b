"""
Module `ingestion.eemanager` provides the EarthEngineManager class to
encapsulate Google Earth Engine initialization, retries, and image collection retrieval.
"""

import os
import json
import time
from typing import Optional, Any

from google.oauth2.credentials import Credentials

import ee
from ee import EEException

from streamsat.core.logger import Logger
from .sensorspec import SensorSpec


class EarthEngineManager:
    """
    Manages interaction with Google Earth Engine: initialization, retries, and collection retrieval.
    """

    def __init__(
        self,
        credential_path: Optional[str] = None,
        project: Optional[str] = None,
        logger=None,
    ):
        self.credential_path = credential_path
        # Non-interactive auth through a refresh token passed via env
        self.token_env = os.getenv("EARTHENGINE_TOKEN")
        self.project = project or os.getenv("STREAMSAT_EE_PROJECT")
        self.logger = logger or Logger.get_logger(__name__)

    def _token_credentials(self) -> Any:
        """Build OAuth credentials from EARTHENGINE_TOKEN (path or JSON), if usable."""
        if not self.token_env:
            return None
        creds_data = None
        # The variable holds either a path to a credentials file or its JSON
        if os.path.exists(self.token_env):
            with open(self.token_env, "r", encoding="utf-8") as fh:
                creds_data = json.load(fh)
        else:
            try:
                creds_data = json.loads(self.token_env)
            except json.JSONDecodeError:
                self.logger.warning("EARTHENGINE_TOKEN is neither a file nor JSON")
        if not creds_data or "refresh_token" not in creds_data:
            return None
        return Credentials(
            None,
            refresh_token=creds_data.get("refresh_token"),
            token_uri=creds_data.get("token_uri", ee.oauth.TOKEN_URI),
            client_id=creds_data.get("client_id", ee.oauth.CLIENT_ID),
            client_secret=creds_data.get("client_secret", ee.oauth.CLIENT_SECRET),
            scopes=creds_data.get("scopes", ee.oauth.SCOPES),
            quota_project_id=creds_data.get("project"),
        )

    def initialize(self) -> None:
        """
        Authenticate & initialize Earth Engine.
        If a service-account JSON path is given, use it; otherwise try the
        refresh token from the environment and finally the default credentials.
        """
        project = self.project
        try:
            if self.credential_path:
                sa_credentials: Any = ee.ServiceAccountCredentials(
                    None, self.credential_path  # type: ignore[arg-type]
                )
                ee.Initialize(sa_credentials, project=project)
                return
            token_credentials = self._token_credentials()
            if token_credentials is not None:
                ee.Initialize(token_credentials, project=project)
            else:
                ee.Initialize(project=project)
        # No stored credentials yet: fall back to the interactive flow
        except EEException:
            self.logger.info("Earth Engine not authorised; starting authentication")
            ee.Authenticate()
            ee.Initialize(project=project)

    def safe_get_info(self, obj, max_retries: int = 3):
        """
        Wrapper for obj.getInfo() that:
          - retries transient errors
          - on PERMISSION_DENIED, forces a re-auth + re-init and retries once
          - raises after max_retries
        """
        for attempt in range(1, max_retries + 1):
            try:
                return obj.getInfo()
            except EEException as e:
                msg = str(e)
                # Permission issue: re-auth, then retry once
                if "PERMISSION_DENIED" in msg:
                    self.logger.error(
                        "Earth Engine permission denied. Re-authenticating..."
                    )
                    ee.Authenticate()  # interactive, once per process
                    self.initialize()  # keeps credentials and project
                    if attempt == 1:
                        continue
                # Anything else is treated as transient: exponential backoff
                if attempt < max_retries:
                    backoff = 2 ** (attempt - 1)
                    self.logger.warning(
                        "Transient EE error (attempt %d/%d): %s - retrying in %ds",
                        attempt,
                        max_retries,
                        msg,
                        backoff,
                    )
                    time.sleep(backoff)
                    continue
                # Give up
                self.logger.error(
                    "Failed to getInfo() after %d attempts: %s", attempt, msg
                )
                raise
        return None

    def get_image_collection(
        self,
        collection_id: str,
        start_date: str,
        end_date: str,
        region: Optional[ee.FeatureCollection] = None,
        mask_clouds: bool = True,
    ) -> ee.ImageCollection:
        """
        Return an EE ImageCollection filtered by date (and region, when given),
        with optional cloud masking.
        """
        coll = ee.ImageCollection(collection_id).filterDate(start_date, end_date)
        if region is not None:
            coll = coll.filterBounds(region)
        if mask_clouds:
            # Masking must run before band aliasing drops the QA band
            sensor = SensorSpec.from_collection_id(collection_id)
            coll = coll.map(sensor.cloud_mask)
        return coll


# Convenience singleton
ee_manager = EarthEngineManager()
