"""
Image capture for listing forms.
Reads local image files and encodes them as data URIs; listings carry images inline.
"""

from pathlib import Path
from typing import Iterable, List
import base64
import io
import logging

import aiofiles
from PIL import Image, UnidentifiedImageError

from silver_estates.frontend.exceptions import ValidationError

logger = logging.getLogger(__name__)


class ImageCapture:
    """Validates and encodes listing photos."""

    # Supported image formats and their MIME types
    SUPPORTED_FORMATS = {
        "image/jpeg": [".jpg", ".jpeg"],
        "image/png": [".png"],
        "image/webp": [".webp"],
    }

    MAX_FILE_SIZE = 5 * 1024 * 1024

    @classmethod
    def mime_type_for(cls, filename: str) -> str:
        """
        Raises:
            ValidationError: If the extension is not a supported image type
        """
        extension = Path(filename).suffix.lower()
        for mime_type, extensions in cls.SUPPORTED_FORMATS.items():
            if extension in extensions:
                return mime_type

        supported = [ext for extensions in cls.SUPPORTED_FORMATS.values() for ext in extensions]
        raise ValidationError(
            f"File extension '{extension}' not supported. Supported extensions: {', '.join(supported)}",
            field="images"
        )

    @classmethod
    def verify_image(cls, content: bytes, filename: str) -> None:
        if not content:
            raise ValidationError(f"{filename} is empty", field="images")
        if len(content) > cls.MAX_FILE_SIZE:
            raise ValidationError(
                f"{filename} exceeds maximum size of {cls.MAX_FILE_SIZE // (1024 * 1024)}MB",
                field="images"
            )

        try:
            with Image.open(io.BytesIO(content)) as image:
                image.verify()
        except (UnidentifiedImageError, OSError, SyntaxError) as e:
            raise ValidationError(f"{filename} is not a valid image: {e}", field="images")

    @classmethod
    def encode(cls, content: bytes, filename: str) -> str:
        """Encode verified image bytes as a data URI."""
        mime_type = cls.mime_type_for(filename)
        cls.verify_image(content, filename)
        return f"data:{mime_type};base64,{base64.b64encode(content).decode('ascii')}"

    @classmethod
    async def read_file(cls, path: str) -> str:
        """
        Read an image from disk as a data URI.

        Raises:
            ValidationError: If the file is missing, unsupported or not an image
        """
        file_path = Path(path)
        if not file_path.is_file():
            raise ValidationError(f"{file_path.name} does not exist", field="images")

        cls.mime_type_for(file_path.name)
        async with aiofiles.open(file_path, "rb") as f:
            content = await f.read()

        logger.debug(f"Captured image {file_path.name} ({len(content)} bytes)")
        return cls.encode(content, file_path.name)

    @classmethod
    async def read_files(cls, paths: Iterable[str]) -> List[str]:
        return [await cls.read_file(path) for path in paths]
