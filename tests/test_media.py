from __future__ import annotations

from dataclasses import replace
from unittest.mock import MagicMock

import pytest
import requests

from bizdirectory.config import load_config
from bizdirectory.media import CloudinaryUploader, UploadedLogo, build_cdn_url, sign_params

CDN_PREFIX = "https://res.cloudinary.com/demo/image/upload/c_fit,w_200,h_200,q_auto,f_auto/"


@pytest.mark.parametrize(
    "public_id,expected",
    [
        ("bizdirectory/business-logos/abc", CDN_PREFIX + "bizdirectory/business-logos/abc"),
        ("bizdirectory/business-logos/abc.png", CDN_PREFIX + "bizdirectory/business-logos/abc"),
        (
            "https://res.cloudinary.com/other/image/upload/v123/bizdirectory/business-logos/abc.jpg",
            CDN_PREFIX + "bizdirectory/business-logos/abc",
        ),
        ("https://cdn.example.com/logo.png", "https://cdn.example.com/logo.png"),
        (None, None),
    ],
)
def test_build_cdn_url(public_id, expected):
    assert build_cdn_url(public_id, "demo") == expected


def test_build_cdn_url_needs_cloud_name():
    assert build_cdn_url("abc", None) is None


def test_sign_params_is_order_independent():
    assert sign_params({"b": "2", "a": "1"}, "secret") == sign_params({"a": "1", "b": "2"}, "secret")
    assert len(sign_params({"a": "1"}, "secret")) == 40


@pytest.fixture
def uploader():
    config = replace(
        load_config(),
        cloudinary_cloud_name="demo",
        cloudinary_api_key="key",
        cloudinary_api_secret="secret",
    )
    uploader = CloudinaryUploader(config)
    uploader.session = MagicMock()
    return uploader


def test_upload_returns_secure_url_and_public_id(uploader):
    resp = MagicMock(status_code=200)
    resp.json.return_value = {"secure_url": "https://res.cloudinary.com/demo/x.png", "public_id": "x"}
    uploader.session.post.return_value = resp

    assert uploader.upload("logo.png", b"\x89PNG", "image/png") == UploadedLogo(
        url="https://res.cloudinary.com/demo/x.png", public_id="x"
    )
    args, kwargs = uploader.session.post.call_args
    assert args[0] == "https://api.cloudinary.com/v1_1/demo/image/upload"
    assert kwargs["data"]["folder"] == "bizdirectory/business-logos"
    assert kwargs["data"]["api_key"] == "key"


@pytest.mark.parametrize(
    "configure",
    [
        lambda session: setattr(session.post, "side_effect", requests.ConnectionError("down")),
        lambda session: setattr(session.post, "return_value", MagicMock(status_code=400, text="bad")),
    ],
)
def test_upload_failures_degrade_to_none(uploader, configure):
    configure(uploader.session)

    assert uploader.upload("logo.png", b"data", "image/png") is None


def test_upload_disabled_without_credentials():
    uploader = CloudinaryUploader(load_config())
    uploader.session = MagicMock()

    assert uploader.enabled is False
    assert uploader.upload("logo.png", b"data") is None
    uploader.session.post.assert_not_called()
