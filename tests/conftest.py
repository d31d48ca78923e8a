from pathlib import Path
from types import SimpleNamespace
from typing import Any

import numpy as np
import pytest
import rasterio
from affine import Affine
from botocore.exceptions import ClientError
from numpy.typing import NDArray


class FakeLog:
    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []

    def _record(self, level: str, message: str) -> None:
        self.messages.append((level, message))

    def debug(self, message: str, *_: Any, **__: Any) -> None:
        self._record("debug", message)

    def info(self, message: str, *_: Any, **__: Any) -> None:
        self._record("info", message)

    def warning(self, message: str, *_: Any, **__: Any) -> None:
        self._record("warning", message)

    def error(self, message: str, *_: Any, **__: Any) -> None:
        self._record("error", message)


class FakeS3Client:
    """In-memory S3 client.

    Presigned URLs point at a local file holding the object bytes so that
    rasterio can open them.
    """

    def __init__(self, presign_dir: Path | None = None) -> None:
        self.objects: dict[str, bytes] = {}
        self.put_calls: list[dict[str, Any]] = []
        self.deleted: list[str] = []
        self.fail_put_prefix: str | None = None
        self.presign_dir = presign_dir

    def put_object(self, **kwargs: Any) -> dict[str, Any]:
        if self.fail_put_prefix and kwargs["Key"].startswith(self.fail_put_prefix):
            raise ClientError({"Error": {"Code": "500", "Message": "Internal Error"}}, "PutObject")
        self.put_calls.append(kwargs)
        self.objects[kwargs["Key"]] = kwargs["Body"]
        return {"ResponseMetadata": {"HTTPStatusCode": 200}}

    def get_object(self, Bucket: str, Key: str) -> dict[str, Any]:
        if Key not in self.objects:
            raise ClientError({"Error": {"Code": "NoSuchKey", "Message": "Not Found"}}, "GetObject")
        return {"Body": SimpleNamespace(read=lambda: self.objects[Key])}

    def head_object(self, Bucket: str, Key: str) -> dict[str, Any]:
        if Key not in self.objects:
            raise ClientError({"Error": {"Code": "404", "Message": "Not Found"}}, "HeadObject")
        return {"ContentLength": len(self.objects[Key])}

    def delete_object(self, Bucket: str, Key: str) -> dict[str, Any]:
        self.deleted.append(Key)
        self.objects.pop(Key, None)
        return {}

    def generate_presigned_url(self, operation: str, Params: dict[str, str], ExpiresIn: int) -> str:
        key = Params["Key"]
        if self.presign_dir is None:
            return f"https://s3.example/{Params['Bucket']}/{key}?X-Amz-Expires={ExpiresIn}"
        path = self.presign_dir / key.replace("/", "_")
        path.write_bytes(self.objects[key])
        return str(path)

    def get_paginator(self, operation: str) -> Any:
        def paginate(Bucket: str, Prefix: str) -> list[dict[str, Any]]:
            contents = [
                {"Key": key, "LastModified": f"2024-01-{index + 1:02d}T00:00:00Z"}
                for index, key in enumerate(self.objects)
                if key.startswith(Prefix)
            ]
            return [{"Contents": contents}]

        return SimpleNamespace(paginate=paginate)


class FakeS3Resource:
    def __init__(self, client: FakeS3Client) -> None:
        self.client = client

    def get_client(self) -> FakeS3Client:
        return self.client


def write_geotiff(path: Path, data: NDArray[Any], crs: str = "EPSG:4326", transform: Affine | None = None) -> None:
    """
    Helper function to write a single-band GeoTIFF file for testing.

    Args:
      path: Path to write the GeoTIFF
      data: NumPy array with raster data, indexed [row, col]
      crs: Coordinate reference system
      transform: Affine transform (defaults to simple scale)
    """
    height, width = data.shape
    transform = transform or Affine.translation(0, 0) * Affine.scale(1, -1)
    with rasterio.open(
        path,
        "w",
        driver="GTiff",
        height=height,
        width=width,
        count=1,
        dtype=data.dtype,
        crs=crs,
        transform=transform,
    ) as dst:
        dst.write(data, 1)


def quadrant_raster(values: tuple[int, int, int, int] = (10, 20, 30, 40), size: int = 366) -> NDArray[np.uint16]:
    """Build a 2x2-tile raster whose tiles are constant.

    Values are given in scan order: top-left, bottom-left, top-right, bottom-right.
    """
    data = np.zeros((size * 2, size * 2), dtype="uint16")
    data[:size, :size] = values[0]
    data[size:, :size] = values[1]
    data[:size, size:] = values[2]
    data[size:, size:] = values[3]
    return data


@pytest.fixture
def fake_context() -> Any:
    return SimpleNamespace(log=FakeLog())


@pytest.fixture
def fake_settings() -> Any:
    return SimpleNamespace(
        aws_s3_pipeline_bucket_name="test-bucket",
        band_url_expiry_seconds=900,
        earthdata_token="earthdata-token",
        openai_model="gpt-4",
    )
