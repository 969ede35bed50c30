# client.py
import logging

import cloudinary.api
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError


class CloudinaryClient:
    """
    Thin wrapper around the Cloudinary SDK. The SDK keeps its credentials in a
    process-wide config object; this client binds its own credentials to every
    call instead, so several accounts can be used side by side.
    """

    def __init__(self, cloud_name: str, api_key: str, api_secret: str, verify: bool = False):
        self.cloud_name = cloud_name
        self._credentials = {
            "cloud_name": cloud_name,
            "api_key": api_key,
            "api_secret": api_secret,
        }
        if verify:
            try:
                # Verify the credentials with a cheap authenticated call
                cloudinary.api.ping(**self._credentials)
                logging.info(f"Cloudinary client for cloud '{cloud_name}' initialized successfully.")
            except CloudinaryError as e:
                logging.error(
                    f"Failed to initialize Cloudinary client. Check your credentials. Error: {e}"
                )
                raise

    def _options(self, options: dict) -> dict:
        # Unset options (e.g. the first page's cursor) are left out of the request
        options = {key: value for key, value in options.items() if value is not None}
        return {**options, **self._credentials}

    # --- Upload API ---

    def upload(self, file, **options) -> dict:
        return cloudinary.uploader.upload(file, **self._options(options))

    def rename(self, from_public_id: str, to_public_id: str, **options) -> dict:
        return cloudinary.uploader.rename(from_public_id, to_public_id, **self._options(options))

    def destroy(self, public_id: str, **options) -> dict:
        return cloudinary.uploader.destroy(public_id, **self._options(options))

    def explicit(self, public_id: str, **options) -> dict:
        return cloudinary.uploader.explicit(public_id, **self._options(options))

    # --- Admin API ---

    def resource(self, public_id: str, **options) -> dict:
        return cloudinary.api.resource(public_id, **self._options(options))

    def update(self, public_id: str, **options) -> dict:
        return cloudinary.api.update(public_id, **self._options(options))

    def resources(self, **options) -> dict:
        return cloudinary.api.resources(**self._options(options))

    def resources_by_asset_folder(self, asset_folder: str, **options) -> dict:
        return cloudinary.api.resources_by_asset_folder(asset_folder, **self._options(options))

    def root_folders(self, **options) -> dict:
        return cloudinary.api.root_folders(**self._options(options))

    def subfolders(self, path: str, **options) -> dict:
        return cloudinary.api.subfolders(path, **self._options(options))

    def create_folder(self, path: str, **options) -> dict:
        return cloudinary.api.create_folder(path, **self._options(options))

    def delete_folder(self, path: str, **options) -> dict:
        return cloudinary.api.delete_folder(path, **self._options(options))
