"""boto3 implementations of the service interfaces."""
