import os
from setuptools import setup, find_packages

here = os.path.abspath(os.path.dirname(__file__))

# The SDK ships from sdk/ but documents itself with the service README one level up.
readme_path = os.path.join(here, os.pardir, "README.md")
if os.path.exists(readme_path):
    with open(readme_path, encoding="utf-8") as f:
        long_description = f.read()
else:
    long_description = "Requests-based client for the Forum Shield posts, comments and filter API."

setup(
    name="forum-shield-py",
    version="1.0.0",
    description="Client for the Forum Shield API (posts, comments, banned-term filter)",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="Forum Shield maintainers",
    packages=find_packages(include=["forum_shield", "forum_shield.*"]),
    install_requires=[
        "requests>=2.31.0",
    ],
    extras_require={
        "test": ["pytest>=7.4"],
    },
    keywords=["forum", "moderation", "content-filter", "sanitization"],
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: Internet :: WWW/HTTP :: Dynamic Content :: Message Boards",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
    ],
    python_requires=">=3.10",
)
