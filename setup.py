from setuptools import setup


setup(
    name="kpro-doctor",
    version="0.3.0",
    description="Row-level schema detection and standardization for mixed-generation Kaleidoscope Pro exports",
    packages=["kpro_doctor"],
    python_requires=">=3.9",
    install_requires=[
        "pandas",
        "chardet",
        "openpyxl",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "kpro-doctor=kpro_doctor.cli:main",
        ]
    },
)
