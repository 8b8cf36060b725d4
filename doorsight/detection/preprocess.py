"""Image normalization into the square model input buffer."""

import cv2
import numpy as np
from dataclasses import dataclass
from enum import Enum

from doorsight.errors import InvalidImageError
from doorsight.utils.logger import get_logger

logger = get_logger(__name__)


class InputEncoding(str, Enum):
    """Pixel encoding of the model input buffer."""
    UINT8 = "uint8"
    FLOAT32 = "float32"


@dataclass(frozen=True)
class NormalizedImage:
    """Model input tensor plus the oriented source dimensions used for decoding."""
    tensor: np.ndarray  # (1, S, S, 3), RGB
    source_width: int
    source_height: int
    encoding: InputEncoding

    @property
    def input_size(self) -> int:
        return self.tensor.shape[1]

    @property
    def nbytes(self) -> int:
        return self.tensor.nbytes

    def to_bytes(self) -> bytes:
        """Packed row-major RGB buffer in native byte order."""
        return self.tensor.tobytes()


_RIGHT_ANGLE_ROTATIONS = {
    90: cv2.ROTATE_90_CLOCKWISE,
    180: cv2.ROTATE_180,
    270: cv2.ROTATE_90_COUNTERCLOCKWISE,
}


def decode_image_bytes(data: bytes) -> np.ndarray:
    """
    Decode encoded image bytes (JPEG, PNG, ...) into a BGR array.

    Raises:
        InvalidImageError: If the bytes cannot be decoded.
    """
    if not data:
        raise InvalidImageError("Empty image buffer")
    image = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_COLOR)
    if image is None:
        raise InvalidImageError("Could not decode image buffer")
    return image


def rotate_image(image: np.ndarray, rotation_degrees: float) -> np.ndarray:
    """
    Rotate an image clockwise by rotation_degrees.

    Right angles are exact; other angles expand the canvas so the whole
    rotated image is kept.
    """
    degrees = rotation_degrees % 360
    if degrees == 0:
        return image

    if degrees in _RIGHT_ANGLE_ROTATIONS:
        return cv2.rotate(image, _RIGHT_ANGLE_ROTATIONS[int(degrees)])

    h, w = image.shape[:2]
    center = (w / 2.0, h / 2.0)
    # OpenCV angles are counter-clockwise
    matrix = cv2.getRotationMatrix2D(center, -degrees, 1.0)
    cos = abs(matrix[0, 0])
    sin = abs(matrix[0, 1])
    new_w = int(round(h * sin + w * cos))
    new_h = int(round(h * cos + w * sin))
    matrix[0, 2] += new_w / 2.0 - center[0]
    matrix[1, 2] += new_h / 2.0 - center[1]
    return cv2.warpAffine(image, matrix, (new_w, new_h), flags=cv2.INTER_LINEAR)


def _to_rgb(image: np.ndarray, color_order: str) -> np.ndarray:
    """Convert a gray, 3- or 4-channel image to 3-channel RGB."""
    if image.ndim == 2 or (image.ndim == 3 and image.shape[2] == 1):
        return cv2.cvtColor(image.reshape(image.shape[:2]), cv2.COLOR_GRAY2RGB)

    if image.ndim != 3:
        raise InvalidImageError(f"Unsupported image shape {image.shape}")

    channels = image.shape[2]
    bgr = color_order.lower() == "bgr"
    if channels == 3:
        return cv2.cvtColor(image, cv2.COLOR_BGR2RGB) if bgr else image
    if channels == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2RGB if bgr else cv2.COLOR_RGBA2RGB)

    raise InvalidImageError(f"Unsupported channel count {channels}")


def normalize_image(
    image: np.ndarray,
    input_size: int = 640,
    rotation_degrees: float = 0,
    encoding: InputEncoding = InputEncoding.FLOAT32,
    color_order: str = "bgr"
) -> NormalizedImage:
    """
    Rotate, resize and serialize an image for a square-input detector.

    The image is stretched to input_size x input_size (no letterboxing).
    FLOAT32 scales channels to [0, 1]; UINT8 keeps raw values.

    Args:
        image: Source image (BGR by default, as produced by OpenCV).
        input_size: Model input edge length S.
        rotation_degrees: Clockwise rotation applied before resizing.
        encoding: Output buffer encoding.
        color_order: Channel order of the source, "bgr" or "rgb".

    Returns:
        NormalizedImage with a (1, S, S, 3) tensor of S*S*3*(4 or 1) bytes.

    Raises:
        InvalidImageError: If the image is missing or has zero width or height.
    """
    if image is None or not isinstance(image, np.ndarray):
        raise InvalidImageError("No image supplied")
    if image.ndim < 2 or image.shape[0] == 0 or image.shape[1] == 0:
        raise InvalidImageError(f"Image has zero size: shape={image.shape}")

    encoding = InputEncoding(encoding)

    if image.dtype != np.uint8:
        # Float images in [0, 1] are rescaled to the 0-255 pixel range
        if np.issubdtype(image.dtype, np.floating) and float(np.nanmax(image)) <= 1.0:
            image = image * 255.0
        image = np.clip(np.nan_to_num(image), 0, 255).astype(np.uint8)

    rgb = _to_rgb(image, color_order)
    oriented = rotate_image(rgb, rotation_degrees)
    source_h, source_w = oriented.shape[:2]

    resized = cv2.resize(oriented, (input_size, input_size), interpolation=cv2.INTER_LINEAR)

    if encoding == InputEncoding.FLOAT32:
        tensor = resized.astype(np.float32) / 255.0
    else:
        tensor = resized.astype(np.uint8)

    tensor = np.ascontiguousarray(tensor[np.newaxis, ...])

    logger.debug(
        f"Normalized {image.shape[1]}x{image.shape[0]} image "
        f"(rotation={rotation_degrees}) to {input_size}x{input_size} {encoding.value}, "
        f"{tensor.nbytes} bytes"
    )

    return NormalizedImage(
        tensor=tensor,
        source_width=source_w,
        source_height=source_h,
        encoding=encoding
    )
