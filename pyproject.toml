[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mechalligator"
version = "0.1.0"
description = "Product aggregator for keyboard stores: a Shopify scraper plugin, a database-backed job queue with worker threads, and a small JSON API."
requires-python = ">=3.10"
keywords = ["scraper", "shopify", "job-queue", "aggregator", "keyboards", "wsgi"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: Indexing/Search",
    "Topic :: Internet :: WWW/HTTP :: WSGI :: Application",
    "Typing :: Typed",
]
dependencies = [
    "requests",
    "werkzeug",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[project.scripts]
mechalligator-api = "mechalligator.api_server:main"
mechalligator-hello = "mechalligator.hello:main"

[tool.hatch.build.targets.wheel]
packages = ["mechalligator"]

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
warn_redundant_casts = true
