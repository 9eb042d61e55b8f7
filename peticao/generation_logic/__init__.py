"""Generation logic package.

Groups the helpers that orchestrate petition generation (case loading, logo
fetch, DOCX assembly, storage) so `peticao/api/routes.py` stays focused on
HTTP routing.
"""

from .generation_flow import assemble_for_case  # noqa: F401
from .generation_flow import generate_petition  # noqa: F401
from .report_finalization import _stream_docx  # noqa: F401
