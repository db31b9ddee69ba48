# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

from setuptools import find_packages, setup
from src.gluejobs import __version__ as version

REQUIRED_PACKAGES = [
    'boto3 >= 1.41.1',
    'packaging >= 25.0',
    'overrides >= 3.1.0',
]

TEST_PACKAGES = [
    'moto[glue,iam,s3,sts] >= 5.0.0',
    'pytest',
]

setup(
    name="glue-jobs",
    python_requires=">=3.10",
    version=version,
    description="Typed definitions of AWS Glue jobs (Python Shell, PySpark ETL, PySpark Streaming, Ray) with best-practice defaults.",
    keywords="aws cloud glue etl spark pyspark streaming ray python-shell infrastructure-as-code cloudformation",
    author="Amazon.com Inc.",
    license="Apache 2.0",

    packages=find_packages(where="src", exclude=("test", "test_integration")),
    package_dir={"": "src"},
    install_requires=REQUIRED_PACKAGES,
    extras_require={"test": TEST_PACKAGES},

    include_package_data=True,
)
