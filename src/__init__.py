"""hugoship - check, build and publish a Hugo blog to S3 and CloudFront."""

__version__ = "0.1.0"
