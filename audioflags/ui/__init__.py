from .code_editor import CodeEditor
from .main_window import MainWindow
from .search_bar import SearchBar
from .tone_picker import DialogTonePicker, TonePickerDialog

__all__ = ['MainWindow', 'CodeEditor', 'SearchBar', 'DialogTonePicker', 'TonePickerDialog']
