import logging
import sys

from PyQt5.QtWidgets import QApplication

from audioflags.ui import MainWindow
from audioflags.utils import load_config


def main():
    """
    Main function to run the editor.
    It checks for a file path passed as a command-line argument.
    """
    config = load_config()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    app = QApplication(sys.argv)

    file_path = None
    if len(sys.argv) > 1:
        file_path = sys.argv[1]

    window = MainWindow(config, file_path)
    window.resize(1000, 700)
    window.show()
    sys.exit(app.exec_())

if __name__ == '__main__':
    main()
