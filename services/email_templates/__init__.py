"""
Email templates: merge tags, layout composition, and template lifecycle.
"""

from services.email_templates.merge_tags import MergeTagEngine
from services.email_templates.service import RenderedEmail, render, render_by_name

__all__ = ["MergeTagEngine", "RenderedEmail", "render", "render_by_name"]
