"""Deploy static content to S3 and front it with CloudFront next to an API Gateway stage."""
