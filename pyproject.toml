[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "bookmanager"
version = "0.1.0"
description = "Data layer and request helpers for a library management application: books, loans, users and internal mail."
requires-python = ">=3.10"
keywords = ["library", "books", "borrowing", "sqlite", "flask"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Web Environment",
    "Framework :: Flask",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database",
    "Topic :: Internet :: WWW/HTTP :: Dynamic Content",
]
dependencies = [
    "flask",
    "python-dotenv",
]

[project.optional-dependencies]
test = [
    "pytest",
    "freezegun",
]

[project.scripts]
bookmanager-migrate = "bookmanager.schema:main"

[tool.hatch.build.targets.wheel]
packages = ["bookmanager"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
