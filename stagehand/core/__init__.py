# stagehand/core/__init__.py
