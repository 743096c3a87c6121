[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "camconv"
version = "0.1.0"
description = "Pure-Python conversions of raw camera frame buffers (RGB565, RGB888, YUV422, grayscale) to baseline JPEG, BMP and BGR888"
requires-python = ">=3.10"
dependencies = []
keywords = ["jpeg", "bmp", "yuv422", "rgb565", "camera", "image conversion", "baseline jpeg encoder"]
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
    "Topic :: Multimedia :: Graphics :: Graphics Conversion",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest", "hypothesis"]

[tool.hatch.build.targets.wheel]
packages = ["camconv"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
strict = true
