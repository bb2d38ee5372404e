"""Pydantic request/response schemas.

Import from the submodules directly (``buyer_intake.schemas.buyer`` etc.);
``core.constants`` depends on ``schemas.common`` so this package stays free
of eager re-exports.
"""
