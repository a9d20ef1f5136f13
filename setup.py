from setuptools import setup, find_packages


setup(
    name='lbp_core',
    version='0.1',
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.9",
    install_requires=[
        "flask>=2.2",
        "flask-openapi3>=3.0",
        "pydantic>=2.0",
        "python-dotenv>=1.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        'console_scripts': [
            'lbp_core = lbp_core.main:main',
        ],
    },
)
