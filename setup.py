"""KMS Credentials setup."""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as f:
    long_description = f.read()

setup(
    name="kms-credentials",
    version="0.1.0",
    packages=find_packages(include=["kms_credentials", "kms_credentials.*"]),
    install_requires=[
        "httpx>=0.24.0",
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
    ],
    extras_require={
        "aws": [
            "boto3>=1.26.0",
        ],
        "test": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "boto3>=1.26.0",
        ],
        "all": [
            "boto3>=1.26.0",
        ],
    },
    python_requires=">=3.10",
    author="KMS Credentials",
    author_email="",
    description="Automatic AWS, GCP and Azure credential refresh for client-side field-level encryption",
    long_description=long_description,
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: Apache Software License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Security :: Cryptography",
    ],
    keywords="kms, credentials, aws, gcp, azure, encryption",
)
