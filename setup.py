from setuptools import find_packages, setup


setup_requires = ("setuptools_scm",)

install_requires = (
    "yarl>=1.9",
    "pydantic>=2.0",
    "structlog>=23.1",
)

extras_require = {"dev": ("pytest>=7.0",)}

setup(
    name="platform-apiserver",
    use_scm_version={"fallback_version": "0.0.0"},
    packages=find_packages(exclude=("tests", "tests.*")),
    setup_requires=setup_requires,
    install_requires=install_requires,
    extras_require=extras_require,
    python_requires=">=3.10",
    entry_points={
        "console_scripts": ["platform-apiserver-config=platform_apiserver.api:main"]
    },
    zip_safe=False,
)
