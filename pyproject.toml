[build-system]
requires = ["setuptools>=68", "wheel"]
build-backend = "setuptools.build_meta"

[project]
name = "llmruntime"
version = "0.1.0"
description = "SQLite-backed stores for LLM backends, models, pools, remote hooks, a job queue and key-value data"
requires-python = ">=3.10"
dependencies = []
keywords = ["llm", "store", "sqlite", "job-queue", "key-value", "model-pool"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.setuptools.packages.find]
include = ["llmruntime*"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
