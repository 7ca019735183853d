"""LaTeX escaping and message rendering."""

from chatbook.latex.render import LatexMessage, render_message
from chatbook.latex.sanitizer import LatexSanitizer, latex_escape

__all__ = ["LatexMessage", "render_message", "LatexSanitizer", "latex_escape"]
