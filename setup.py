from setuptools import setup, find_packages
import os

install_requires = ["lark>=1.1", "pydantic>=2.0", "pandas"]

# Define optional dependencies for development and specific features
extras_require = {"dev": ["pytest"], "lsp": ["pygls>=1.0.0,<2", "lsprotocol"]}  # Language Server Protocol support

setup(
    name="exa-analyzer",
    version="1.0.0",
    packages=find_packages(where=".", exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=install_requires,
    extras_require=extras_require,
    entry_points={
        "console_scripts": [
            "exa = exa.cli:main",
            "exa-lsp = exa.server:start_server",
        ],
    },
    include_package_data=True,
    package_data={"exa.lexer": ["*.lark"]},
    description="Lexer, recursive-descent parser and symbol table for single-line arithmetic expressions.",
    long_description=open("README.md").read() if os.path.exists("README.md") else "",
    long_description_content_type="text/markdown",
)
