import asyncio
import os
import shutil
import tempfile
import zipfile
from typing import Optional

import aiohttp
from loguru import logger

from signing_request_client.client import error_response_to_text
from signing_request_client.exceptions import ArtifactDownloadError

CHUNK_SIZE = 64 * 1024


def resolve_or_create_directory(base_directory: str, relative_path: str) -> str:
    absolute_path = os.path.abspath(os.path.join(base_directory, relative_path))
    if not os.path.isdir(absolute_path):
        logger.info(f'Directory "{absolute_path}" does not exist and will be created')
        os.makedirs(absolute_path, exist_ok=True)
    return absolute_path


async def _save_to_file(
    session: aiohttp.ClientSession,
    url: str,
    api_token: str,
    target_file: str,
    timeout: float,
) -> None:
    try:
        async with session.get(
            url,
            headers={"Authorization": f"Bearer {api_token}"},
            timeout=aiohttp.ClientTimeout(total=timeout),
        ) as response:
            if response.status >= 400:
                body = await response.text()
                raise ArtifactDownloadError(
                    error_response_to_text(response.status, response.reason, body)
                )
            with open(target_file, "wb") as writer:
                async for chunk in response.content.iter_chunked(CHUNK_SIZE):
                    writer.write(chunk)
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        raise ArtifactDownloadError(
            f"Downloading the signed artifact failed: {str(e) or type(e).__name__}"
        ) from e


async def download_signed_artifact(
    session: aiohttp.ClientSession,
    url: str,
    api_token: str,
    target_directory: str,
    *,
    temp_root: Optional[str] = None,
    timeout: float = 300.0,
) -> str:
    """Download the signed artifact ZIP and extract it into ``target_directory``.

    The archive is stored in a fresh temporary directory under ``temp_root``
    which is removed again whether the download succeeds or not.
    """
    logger.info(
        f"The signed artifact is being downloaded from SignPath and will be saved to {target_directory}"
    )
    tmp_dir = tempfile.mkdtemp(dir=temp_root)
    logger.debug(f"Created temp directory {tmp_dir}")

    try:
        tmp_zip_file = os.path.join(tmp_dir, "artifact_tmp.zip")
        await _save_to_file(session, url, api_token, tmp_zip_file, timeout)
        logger.debug(f"The signed artifact ZIP has been saved to {tmp_zip_file}")

        logger.debug(f"Extracting the signed artifact from {tmp_zip_file} to {target_directory}")
        try:
            with zipfile.ZipFile(tmp_zip_file) as archive:
                archive.extractall(target_directory)
        except zipfile.BadZipFile as e:
            raise ArtifactDownloadError(f"The signed artifact is not a valid ZIP archive: {e}") from e
    finally:
        logger.debug(f"Deleting temp directory {tmp_dir}")
        shutil.rmtree(tmp_dir, ignore_errors=True)

    logger.info(
        f"The signed artifact has been successfully downloaded from SignPath and extracted to {target_directory}"
    )
    return target_directory
