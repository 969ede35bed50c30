# tests/conftest.py
import io
import posixpath
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import requests
from cloudinary.exceptions import Error as CloudinaryError, NotFound

from cloudinary_vfs.adapter import CloudinaryAdapter
from cloudinary_vfs.config import Settings, get_settings


@pytest.fixture
def mock_settings():
    """
    Provides a mock of the application settings for testing.
    This avoids the need for environment variables during tests.
    """
    settings = MagicMock(spec=Settings)
    settings.CLOUDINARY_URL = None
    settings.CLOUDINARY_CLOUD_NAME = "demo"
    settings.CLOUDINARY_API_KEY = "test_key"
    settings.CLOUDINARY_API_SECRET = "test_secret"
    settings.CLOUDINARY_DYNAMIC_FOLDERS = True
    settings.CLOUDINARY_PATH_PREFIX = ""
    settings.HTTP_TIMEOUT_SECONDS = 5
    settings.LOG_LEVEL = "INFO"
    settings.folder_mode = "dynamic"
    settings.BASE_DIR = Path("/tmp")
    settings.LOG_FILE = Path("/tmp/app.log")
    return settings


@pytest.fixture(autouse=True)
def patch_settings_class(monkeypatch, mock_settings):
    """
    Any part of the app code that calls `Settings()` during a test run
    receives the `mock_settings` instance instead of a real settings object.
    """
    get_settings.cache_clear()
    monkeypatch.setattr("cloudinary_vfs.config.Settings", lambda *args, **kwargs: mock_settings)
    yield
    get_settings.cache_clear()


_EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)


class FakeCloudinaryClient:
    """
    In-memory stand-in for CloudinaryClient that mimics how Cloudinary stores
    assets under dynamic or fixed folders. Pages hold `page_size` entries
    regardless of `max_results`, so small test trees still span several pages.
    """

    def __init__(self, cdn: dict, dynamic_folders: bool = True, page_size: int = 2):
        self.cdn = cdn
        self.dynamic_folders = dynamic_folders
        self.page_size = page_size
        self.assets = {}
        self.folders = set()
        self.calls = []
        self._version = 0

    def called(self, name):
        return [call for call in self.calls if call[0] == name]

    def _record(self, name, *args, **kwargs):
        self.calls.append((name, args, kwargs))

    def _page(self, items, key, next_cursor):
        start = int(next_cursor or 0)
        page = {key: items[start:start + self.page_size]}
        if start + self.page_size < len(items):
            page["next_cursor"] = str(start + self.page_size)
        return page

    def _add_folder(self, path):
        while path:
            self.folders.add(path)
            path = posixpath.dirname(path)

    def _folder_of(self, record):
        return record["asset_folder"] if self.dynamic_folders else record["folder"]

    def _get(self, public_id, resource_type):
        try:
            return self.assets[(resource_type, public_id)]
        except KeyError:
            raise NotFound(f"Resource not found - {public_id}")

    def _publish(self, record, data):
        self._version += 1
        tail = record["public_id"]
        if record["resource_type"] != "raw":
            tail += "." + record["format"]
        record["version"] = self._version
        record["created_at"] = (_EPOCH + timedelta(minutes=self._version)).strftime("%Y-%m-%dT%H:%M:%SZ")
        record["secure_url"] = f"https://res.cloudinary.com/demo/{record['resource_type']}/upload/v{self._version}/{tail}"
        self.cdn[record["secure_url"]] = data

    def add_placeholder(self, public_id, resource_type="image", folder=""):
        record = {
            "public_id": public_id,
            "resource_type": resource_type,
            "type": "upload",
            "format": "jpg",
            "bytes": 0,
            "placeholder": True,
        }
        if self.dynamic_folders:
            record["asset_folder"] = folder
        else:
            record["folder"] = posixpath.dirname(public_id)
        self._publish(record, b"")
        self.assets[(resource_type, public_id)] = record

    def content_of(self, resource_type, public_id):
        return self.cdn[self._get(public_id, resource_type)["secure_url"]]

    # --- Upload API ---

    def upload(self, file, **options):
        self._record("upload", file, **options)
        if isinstance(file, str):
            if file not in self.cdn:
                raise CloudinaryError(f"Resource not found - {file}")
            data = self.cdn[file]
        else:
            data = file.read()
        if not data:
            raise CloudinaryError("Empty file")

        resource_type = options["resource_type"]
        public_id = options["public_id"]
        key = (resource_type, public_id)
        if key in self.assets and not options.get("overwrite"):
            return dict(self.assets[key], existing=True)

        record = {
            "public_id": public_id,
            "resource_type": resource_type,
            "type": "upload",
            "bytes": len(data),
        }
        if resource_type != "raw":
            record["format"] = posixpath.splitext(options.get("filename", ""))[1][1:]
        if self.dynamic_folders:
            record["asset_folder"] = options.get("asset_folder", "")
        else:
            record["folder"] = posixpath.dirname(public_id)
        self._add_folder(self._folder_of(record))
        self._publish(record, data)
        self.assets[key] = record
        return dict(record)

    def rename(self, from_public_id, to_public_id, **options):
        self._record("rename", from_public_id, to_public_id, **options)
        resource_type = options.get("resource_type", "image")
        record = self._get(from_public_id, resource_type)
        if (resource_type, to_public_id) in self.assets and not options.get("overwrite"):
            raise CloudinaryError(f"Resource already exists - {to_public_id}")

        data = self.cdn[record["secure_url"]]
        del self.assets[(resource_type, from_public_id)]
        record = dict(record, public_id=to_public_id)
        if not self.dynamic_folders:
            record["folder"] = posixpath.dirname(to_public_id)
            self._add_folder(record["folder"])
        self._publish(record, data)
        self.assets[(resource_type, to_public_id)] = record
        return dict(record)

    def destroy(self, public_id, **options):
        self._record("destroy", public_id, **options)
        removed = self.assets.pop((options.get("resource_type", "image"), public_id), None)
        return {"result": "ok" if removed else "not found"}

    def explicit(self, public_id, **options):
        self._record("explicit", public_id, **options)
        return dict(self._get(public_id, options.get("resource_type", "image")))

    # --- Admin API ---

    def resource(self, public_id, **options):
        self._record("resource", public_id, **options)
        return dict(self._get(public_id, options.get("resource_type", "image")))

    def update(self, public_id, **options):
        self._record("update", public_id, **options)
        record = self._get(public_id, options.get("resource_type", "image"))
        if "asset_folder" in options:
            record["asset_folder"] = options["asset_folder"]
            self._add_folder(options["asset_folder"])
        return dict(record)

    def resources(self, **options):
        self._record("resources", **options)
        prefix = options.get("prefix", "")
        items = sorted(
            (dict(record) for (resource_type, public_id), record in self.assets.items()
             if resource_type == options["resource_type"] and public_id.startswith(prefix)),
            key=lambda record: record["public_id"],
        )
        return self._page(items, "resources", options.get("next_cursor"))

    def resources_by_asset_folder(self, asset_folder, **options):
        self._record("resources_by_asset_folder", asset_folder, **options)
        items = sorted(
            (dict(record) for record in self.assets.values()
             if record.get("asset_folder", "") == asset_folder),
            key=lambda record: (record["resource_type"], record["public_id"]),
        )
        return self._page(items, "resources", options.get("next_cursor"))

    def _folder_page(self, parent, next_cursor):
        items = [
            {"name": posixpath.basename(path), "path": path}
            for path in sorted(self.folders)
            if posixpath.dirname(path) == parent
        ]
        return self._page(items, "folders", next_cursor)

    def root_folders(self, **options):
        self._record("root_folders", **options)
        return self._folder_page("", options.get("next_cursor"))

    def subfolders(self, path, **options):
        self._record("subfolders", path, **options)
        if path not in self.folders:
            raise NotFound(f"Can't find folder with path {path}")
        return self._folder_page(path, options.get("next_cursor"))

    def create_folder(self, path, **options):
        self._record("create_folder", path, **options)
        self._add_folder(path)
        return {"success": True, "path": path, "name": posixpath.basename(path)}

    def delete_folder(self, path, **options):
        self._record("delete_folder", path, **options)
        if path not in self.folders:
            raise NotFound(f"Can't find folder with path {path}")
        for record in self.assets.values():
            folder = self._folder_of(record)
            if folder == path or folder.startswith(path + "/"):
                raise CloudinaryError(f"Folder is not empty - {path}")
        deleted = sorted(f for f in self.folders if f == path or f.startswith(path + "/"))
        self.folders.difference_update(deleted)
        return {"deleted": deleted}


@pytest.fixture
def cdn(monkeypatch):
    """Delivery URL -> bytes; plain HTTP GETs are answered from here."""
    blobs = {}

    def fake_get(url, stream=False, timeout=None):
        response = MagicMock()
        if url in blobs:
            response.status_code = 200
            response.content = blobs[url]
            response.raw = io.BytesIO(blobs[url])
        else:
            response.status_code = 404
            response.raise_for_status.side_effect = requests.HTTPError(
                f"404 Client Error: Not Found for url: {url}"
            )
        return response

    monkeypatch.setattr("cloudinary_vfs.adapter.requests.get", fake_get)
    return blobs


@pytest.fixture
def make_adapter(cdn):
    """Factory for an adapter over a fresh fake account."""

    def _make(mode="dynamic", path_prefix="", page_size=2):
        client = FakeCloudinaryClient(cdn, dynamic_folders=(mode == "dynamic"), page_size=page_size)
        return CloudinaryAdapter(client, folder_mode=mode, path_prefix=path_prefix)

    return _make


@pytest.fixture(params=["dynamic", "fixed"])
def adapter(request, make_adapter):
    """An adapter in each folder mode."""
    return make_adapter(request.param)
