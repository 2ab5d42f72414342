import sys

import pyderive

expected_python_version = (3, 10)


def exit_if_bad_python_version():
    if sys.version_info < expected_python_version:
        print("[PYDERIVE] [ERROR]  Expected Python %d.%d or newer" % expected_python_version)
        print("[PYDERIVE] [ERROR]  Got: Python " + sys.version)
        exit(-1)


if __name__ == "__main__":
    exit_if_bad_python_version()
    exit(pyderive.cli.main())
