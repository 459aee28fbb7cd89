"""unistroke - Single-stroke gesture recognition by template matching."""

__version__ = "0.1.0"

from unistroke.point import Point
from unistroke.stroke import Stroke, RecognitionResult
from unistroke.errors import StrokeError, InvalidStroke, SizeMismatch, NoTemplates, LibraryFormatError
from unistroke.config import RecognizerConfig
from unistroke.recognizer import Recognizer, recognize
from unistroke.library import TemplateLibrary
from unistroke.recorder import StrokeRecorder, load_points, save_points
