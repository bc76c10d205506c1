"""Word-processor document import via LibreOffice.

``import_document`` converts ``.docx``/``.doc``/``.odt``/``.odf`` files to
HTML with ``soffice --convert-to html`` and then runs the transform stages
over the result, reading extracted images from the output directory.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from docline.config import ConverterConfig, Settings, get_settings
from docline.transform.dom import parse_document, serialize
from docline.transform.options import TransformOptions
from docline.transform.pipeline import TransformError, customize_document
from docline.transform.resolvers import LocalFileImageResolver

logger = logging.getLogger(__name__)


class ConversionError(Exception):
    """LibreOffice did not produce the expected HTML file."""

    def __init__(
        self, message: str, source: Path, returncode: int | None = None
    ) -> None:
        self.source = source
        self.returncode = returncode
        super().__init__(message)

    def __str__(self) -> str:
        return f"{self.args[0]}\n  Source: {self.source}\n  Exit: {self.returncode}"


def is_convertible(path: Path, config: ConverterConfig) -> bool:
    return path.suffix.lower() in config.convertible_types


def soffice_command(soffice: str, src: Path, out_dir: Path) -> list[str]:
    return [
        soffice,
        "--headless",
        "--invisible",
        "--nologo",
        "--nolockcheck",
        "--writer",
        "--convert-to",
        "html",
        str(src),
        "--outdir",
        str(out_dir),
    ]


async def convert_with_soffice(
    src: Path, out_dir: Path, config: ConverterConfig
) -> Path:
    """Convert *src* to HTML in *out_dir*.

    Returns:
        Path to the converted file (``<src stem>.html`` in *out_dir*).

    Raises:
        ConversionError: If the converter is not configured, times out,
            cannot be started, or does not produce the file.
    """
    if not config.enabled:
        msg = "soffice path is not configured"
        raise ConversionError(msg, src)

    cmd = soffice_command(config.soffice_path, src, out_dir)
    logger.debug("Executing soffice command: %s", " ".join(cmd))

    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        msg = f"Could not start soffice: {exc}"
        raise ConversionError(msg, src) from exc

    try:
        _, stderr = await asyncio.wait_for(
            proc.communicate(), timeout=config.timeout_seconds
        )
    except TimeoutError as exc:
        proc.kill()
        await proc.wait()
        msg = f"soffice timed out after {config.timeout_seconds:g}s"
        raise ConversionError(msg, src, proc.returncode) from exc

    converted = out_dir / f"{src.stem}.html"
    if not converted.exists():
        detail = stderr.decode("utf-8", errors="replace").strip()[:200]
        msg = f"Conversion failed: {converted.name} not created. {detail}".strip()
        raise ConversionError(msg, src, proc.returncode)

    logger.info("LibreOffice conversion successful. HTML output at: %s", converted)
    return converted


async def import_document(
    src: Path | str, dest: Path | str, settings: Settings | None = None
) -> bool:
    """Convert *src* to HTML at *dest* and flatten it for the editor.

    Returns:
        True when the import was handled; False when the file type is not
        convertible, conversion is not configured, or conversion or
        transformation failed (the host then falls back to its own import).
    """
    src, dest = Path(src), Path(dest)
    config = (settings or get_settings()).converter

    if not is_convertible(src, config):
        logger.debug("%s is not a convertible type, skipping", src.name)
        return False
    if not config.enabled:
        logger.warning("soffice path not configured. Cannot convert %s", src.name)
        return False

    out_dir = dest.parent
    try:
        converted = await convert_with_soffice(src, out_dir, config)
    except ConversionError:
        logger.exception("Error converting %s", src)
        return False

    if converted != dest:
        logger.debug("Renaming %s to %s", converted, dest)
        converted.replace(dest)

    options = TransformOptions(
        env="import", image_resolver=LocalFileImageResolver(out_dir)
    )
    root = parse_document(dest.read_text(encoding="utf-8", errors="replace"))
    try:
        modified = customize_document(root, options)
    except TransformError:
        logger.exception("Error processing converted HTML for %s", src)
        return False

    if modified:
        logger.info("Converted HTML (%s) was modified. Writing changes.", dest)
        dest.write_text(serialize(root), encoding="utf-8")
    else:
        logger.info("Converted HTML (%s) was not modified.", dest)
    return True
