"""
Face recognition service client (iai). Used by the avatar editor to find
faces and their landmarks so decorations can be placed on the photo.

All coordinates are pixels in the source image.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from cloudapi.abstract_client import AbstractClient
from cloudapi.credential import Credential
from cloudapi.profile import ClientProfile

logger = logging.getLogger(__name__)

FACE_ENDPOINT = "iai.tencentcloudapi.com"
FACE_API_VERSION = "2020-03-03"
FACE_MODEL_VERSION = "3.0"

# Landmark groups returned by AnalyzeFace, in response field order
_LANDMARK_FIELDS = (
    "FaceProfile",
    "LeftEye",
    "RightEye",
    "LeftEyeBrow",
    "RightEyeBrow",
    "Mouth",
    "Nose",
    "LeftPupil",
    "RightPupil",
)


@dataclass(frozen=True, slots=True)
class FaceRect:
    """Bounding box of a detected face."""
    x: int
    y: int
    width: int
    height: int


@dataclass(frozen=True, slots=True)
class Point:
    x: int
    y: int


@dataclass(frozen=True)
class FaceShape:
    """Landmark point groups for one face as (group name, points) pairs."""
    landmarks: tuple[tuple[str, tuple[Point, ...]], ...]

    def group(self, name: str) -> tuple[Point, ...]:
        """Points of one group, e.g. "Mouth". Empty if the group is absent."""
        for group_name, points in self.landmarks:
            if group_name == name:
                return points
        return ()


class FaceClient(AbstractClient):
    """Client for the face recognition API (DetectFace, AnalyzeFace)."""

    def __init__(
        self,
        credential: Credential,
        region: str = "",
        profile: ClientProfile | None = None,
        **kwargs,
    ) -> None:
        super().__init__(FACE_ENDPOINT, FACE_API_VERSION, credential, region, profile, **kwargs)

    def detect_face(
        self,
        image: str | None = None,
        url: str | None = None,
        max_face_num: int = 1,
        need_face_attributes: int = 0,
    ) -> list[FaceRect]:
        """
        Detect faces in an image.

        Args:
            image: Base64-encoded image (mutually exclusive with url)
            url: Image URL (mutually exclusive with image)
            max_face_num: Maximum number of faces to return (1-120)
            need_face_attributes: 1 to request age/gender/etc attributes

        Returns:
            Face bounding boxes, largest face first as returned by the API.
        """
        _check_image_source(image, url)
        if not 1 <= max_face_num <= 120:
            raise ValueError(f"max_face_num must be in 1-120, got {max_face_num}")

        data = self.call("DetectFace", {
            "Image": image,
            "Url": url,
            "MaxFaceNum": max_face_num,
            "NeedFaceAttributes": need_face_attributes,
            "FaceModelVersion": FACE_MODEL_VERSION,
        })
        faces = [
            FaceRect(
                x=int(f.get("X", 0)),
                y=int(f.get("Y", 0)),
                width=int(f.get("Width", 0)),
                height=int(f.get("Height", 0)),
            )
            for f in data.get("FaceInfos") or []
        ]
        logger.debug("DetectFace found %d faces", len(faces))
        return faces

    def analyze_face(
        self,
        image: str | None = None,
        url: str | None = None,
        mode: int = 0,
    ) -> list[FaceShape]:
        """
        Locate facial landmarks. mode=0 analyzes every face (up to 5),
        mode=1 only the largest.
        """
        _check_image_source(image, url)
        if mode not in (0, 1):
            raise ValueError(f"mode must be 0 or 1, got {mode}")

        data = self.call("AnalyzeFace", {
            "Mode": mode,
            "Image": image,
            "Url": url,
            "FaceModelVersion": FACE_MODEL_VERSION,
        })
        shapes = []
        for raw in data.get("FaceShapeSet") or []:
            landmarks = tuple(
                (name, tuple(Point(x=int(p["X"]), y=int(p["Y"])) for p in raw.get(name) or []))
                for name in _LANDMARK_FIELDS
            )
            shapes.append(FaceShape(landmarks=landmarks))
        return shapes


def _check_image_source(image: str | None, url: str | None) -> None:
    if bool(image) == bool(url):
        raise ValueError("Exactly one of image or url must be provided")
