import ipaddress
from typing import Optional

from topology.errors import ConfigError
from topology.models import (
    EksConfig,
    EnvironmentConfig,
    SubnetSpec,
    ValidationErrorDetail,
    VpcConfig,
)

VPC_MIN_PREFIX = 16
VPC_MAX_PREFIX = 28


def is_valid_cidr(cidr: str) -> tuple[bool, Optional[str]]:
    """Check if a CIDR string is a valid IPv4 network.

    Returns (is_valid, error_message).
    """
    try:
        ipaddress.IPv4Network(cidr, strict=False)
        return True, None
    except ValueError as e:
        return False, str(e)


def cidrs_overlap(cidr1: str, cidr2: str) -> bool:
    """Check if two CIDR blocks overlap."""
    try:
        net1 = ipaddress.IPv4Network(cidr1, strict=False)
        net2 = ipaddress.IPv4Network(cidr2, strict=False)
        return net1.overlaps(net2)
    except ValueError:
        return False  # Invalid CIDRs handled elsewhere


def is_subnet_of(subnet_cidr: str, vpc_cidr: str) -> bool:
    """Check if subnet CIDR is within VPC CIDR range."""
    try:
        subnet = ipaddress.IPv4Network(subnet_cidr, strict=False)
        vpc = ipaddress.IPv4Network(vpc_cidr, strict=False)
        return subnet.subnet_of(vpc)
    except ValueError:
        return False


def validate_vpc(vpc: VpcConfig) -> list[ValidationErrorDetail]:
    """Validate VPC name and CIDR."""
    errors: list[ValidationErrorDetail] = []

    if not vpc.name:
        errors.append(ValidationErrorDetail(field="vpc.name", message="VPC name is required"))

    valid, err = is_valid_cidr(vpc.cidr)
    if not valid:
        errors.append(
            ValidationErrorDetail(
                field="vpc.cidr",
                message=f"Invalid VPC CIDR: {err}",
                value=vpc.cidr,
            )
        )
        return errors

    prefixlen = ipaddress.IPv4Network(vpc.cidr, strict=False).prefixlen
    if prefixlen < VPC_MIN_PREFIX or prefixlen > VPC_MAX_PREFIX:
        errors.append(
            ValidationErrorDetail(
                field="vpc.cidr",
                message=f"VPC CIDR must be between /{VPC_MIN_PREFIX} and /{VPC_MAX_PREFIX}",
                value=vpc.cidr,
            )
        )

    return errors


def validate_subnets(vpc: VpcConfig) -> list[ValidationErrorDetail]:
    """Validate subnet CIDRs, placement inside the VPC and AZ usage."""
    errors: list[ValidationErrorDetail] = []

    all_subnets: list[tuple[str, SubnetSpec]] = []
    for i, subnet in enumerate(vpc.subnets.public):
        all_subnets.append((f"vpc.subnets.public[{i}]", subnet))
    for i, subnet in enumerate(vpc.subnets.private):
        all_subnets.append((f"vpc.subnets.private[{i}]", subnet))

    vpc_cidr_valid, _ = is_valid_cidr(vpc.cidr)
    well_formed: list[tuple[str, SubnetSpec]] = []

    for field, subnet in all_subnets:
        if not subnet.az:
            errors.append(
                ValidationErrorDetail(field=f"{field}.az", message="Availability zone is required")
            )

        valid, err = is_valid_cidr(subnet.cidr)
        if not valid:
            errors.append(
                ValidationErrorDetail(
                    field=f"{field}.cidr",
                    message=f"Invalid subnet CIDR: {err}",
                    value=subnet.cidr,
                )
            )
            continue
        well_formed.append((field, subnet))

        if vpc_cidr_valid and not is_subnet_of(subnet.cidr, vpc.cidr):
            errors.append(
                ValidationErrorDetail(
                    field=f"{field}.cidr",
                    message=f"Subnet CIDR {subnet.cidr} is not within VPC CIDR range ({vpc.cidr})",
                    value=subnet.cidr,
                )
            )

    for i, (field1, subnet1) in enumerate(well_formed):
        for j, (field2, subnet2) in enumerate(well_formed):
            if i < j and cidrs_overlap(subnet1.cidr, subnet2.cidr):
                errors.append(
                    ValidationErrorDetail(
                        field=f"{field1}.cidr",
                        message=f"Subnet {subnet1.cidr} overlaps with {subnet2.cidr} ({field2})",
                        value=subnet1.cidr,
                    )
                )

    # at most one private subnet per availability zone
    seen_azs: dict[str, int] = {}
    for i, subnet in enumerate(vpc.subnets.private):
        if subnet.az in seen_azs:
            errors.append(
                ValidationErrorDetail(
                    field=f"vpc.subnets.private[{i}].az",
                    message=(
                        f"Availability zone {subnet.az} already has a private subnet "
                        f"(vpc.subnets.private[{seen_azs[subnet.az]}])"
                    ),
                    value=subnet.az,
                )
            )
        else:
            seen_azs[subnet.az] = i

    return errors


def validate_eks_config(eks: EksConfig) -> list[ValidationErrorDetail]:
    """Validate EKS cluster and node group configuration."""
    errors: list[ValidationErrorDetail] = []

    if eks.count < 1:
        errors.append(
            ValidationErrorDetail(
                field="eks.count",
                message="At least one cluster is required",
                value=str(eks.count),
            )
        )

    for field, value in (
        ("eks.namePrefix", eks.name_prefix),
        ("eks.rolePrefix", eks.role_prefix),
        ("eks.nodeGroupRolePrefix", eks.node_group_role_prefix),
    ):
        if not value:
            errors.append(ValidationErrorDetail(field=field, message="Value is required"))

    seen_names: set[str] = set()
    for i, group in enumerate(eks.node_groups):
        field = f"eks.nodeGroups[{i}]"

        if not group.name:
            errors.append(ValidationErrorDetail(field=f"{field}.name", message="Node group name is required"))
        elif group.name in seen_names:
            errors.append(
                ValidationErrorDetail(
                    field=f"{field}.name",
                    message=f"Duplicate node group name '{group.name}'",
                    value=group.name,
                )
            )
        seen_names.add(group.name)

        if not group.az:
            errors.append(ValidationErrorDetail(field=f"{field}.az", message="Availability zone is required"))

        if not group.instance_types or not all(group.instance_types):
            errors.append(
                ValidationErrorDetail(
                    field=f"{field}.instanceTypes",
                    message="At least one non-empty instance type is required",
                )
            )

        size = group.size
        if not size.min <= size.desired <= size.max:
            errors.append(
                ValidationErrorDetail(
                    field=f"{field}.size",
                    message=(
                        f"Scaling bounds must satisfy min <= desired <= max "
                        f"(min={size.min}, desired={size.desired}, max={size.max})"
                    ),
                )
            )

    return errors


def validate_region(region: str) -> list[ValidationErrorDetail]:
    if region:
        return []
    return [ValidationErrorDetail(field="aws.region", message="AWS region is required")]


def validate_config(config: EnvironmentConfig, region: str) -> None:
    """Validate a loaded configuration before any planning happens.

    Raises ConfigError listing every problem found.
    """
    errors: list[ValidationErrorDetail] = []

    errors.extend(validate_vpc(config.vpc))
    errors.extend(validate_subnets(config.vpc))
    errors.extend(validate_eks_config(config.eks))
    errors.extend(validate_region(region))

    if errors:
        raise ConfigError(errors)
