from setuptools import setup, find_packages


def main():
    setup(
        name="pyderive",
        version="0.1.0",
        description="Generates structural functions (equal, compare, copy_to, ...) for the calls that need them",
        packages=find_packages(include=["pyderive", "pyderive.*"]),
        py_modules=["pyd"],
        python_requires=">=3.10",
        install_requires=[
            "json5",
            "libcst"
        ],
        entry_points={
            "console_scripts": [
                "pyderive=pyderive.cli:main"
            ]
        }
    )


if __name__ == "__main__":
    main()
