"""HTML-to-editor-line transformation stages.

Each stage rewrites an lxml tree in place and reports whether it changed
anything; ``customize_document`` runs them in order.
"""

from docline.transform.encoding import (
    TableMeta,
    TokenDecodeError,
    decode_table_meta,
    decode_token,
    encode_table_meta,
    encode_token,
)
from docline.transform.list_numbering import (
    EditorLine,
    ListNumberingState,
    insert_soft_break,
    number_lines,
)
from docline.transform.options import TransformOptions
from docline.transform.pipeline import (
    STAGES,
    TransformError,
    TransformResult,
    customize_document,
    transform_html,
)
from docline.transform.resolvers import (
    ImageResolver,
    LocalFileImageResolver,
    PassThroughImageResolver,
)
from docline.transform.tables import TableGrid, build_table_grid

__all__ = [
    "STAGES",
    "EditorLine",
    "ImageResolver",
    "ListNumberingState",
    "LocalFileImageResolver",
    "PassThroughImageResolver",
    "TableGrid",
    "TableMeta",
    "TokenDecodeError",
    "TransformError",
    "TransformOptions",
    "TransformResult",
    "build_table_grid",
    "customize_document",
    "decode_table_meta",
    "decode_token",
    "encode_table_meta",
    "encode_token",
    "insert_soft_break",
    "number_lines",
    "transform_html",
]
