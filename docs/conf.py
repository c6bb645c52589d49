# Configuration file for the Sphinx documentation builder.
# https://www.sphinx-doc.org/en/master/usage/configuration.html

# -- Project information -----------------------------------------------------

project = "range-reader"
copyright = "2021, Louis Maddox"
author = "Louis Maddox"

release = ""


# -- General configuration ---------------------------------------------------

extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.intersphinx",
    "sphinx.ext.doctest",
    "sphinx.ext.napoleon",
    "sphinx.ext.viewcode",
    "sphinx_autodoc_typehints",
]

intersphinx_mapping = {
    "python": ("https://docs.python.org/3/", None),
    "ranges": ("https://python-ranges.readthedocs.io/en/latest/", None),
    "httpx": ("https://www.python-httpx.org/", None),
}

suppress_warnings = [
    "ref.term",
    "ref.ref",
    "ref.python",
    "misc.highlighting_failure",
    "autosectionlabel.*",
]

templates_path = ["_templates"]

source_suffix = [".rst", ".md"]

main_doc = "index"

exclude_patterns = ["_build", "Thumbs.db", ".DS_Store"]

# https://github.com/sphinx-doc/sphinx/issues/5480
# (the reader modules only import httpx at runtime, see `MYPY` in reader.py)
set_type_checking_flag = True

# https://www.sphinx-doc.org/en/master/usage/extensions/napoleon.html
napoleon_use_rtype = True
napoleon_use_params = True

# -- Options for HTML output -------------------------------------------------

html_theme = "sphinx_rtd_theme"
html_static_path = ["_static"]
