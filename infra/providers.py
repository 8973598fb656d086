import pulumi_aws as aws

from infra.config import PulumiStackConfig


def create_aws_provider(config: PulumiStackConfig) -> aws.Provider:
    """Create the AWS provider every planned resource is created with."""

    default_tags = {
        "ManagedBy": "Pulumi",
        "Stack": config.stack,
        "Project": config.project,
    }

    return aws.Provider(
        f"{config.stack}-aws",
        region=config.region,
        default_tags=aws.ProviderDefaultTagsArgs(
            tags=default_tags,
        ),
    )
