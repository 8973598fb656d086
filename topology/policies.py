"""IAM policy documents and the kubeconfig template.

These documents are byte-exact contracts with AWS and kubectl.
"""

AWS_MANAGED_POLICY_ARN_PREFIX = "arn:aws:iam::aws:policy/"

EKS_CLUSTER_POLICIES = ["AmazonEKSClusterPolicy", "AmazonEKSServicePolicy"]

EKS_NODE_GROUP_POLICIES = [
    "AmazonEKSWorkerNodePolicy",
    "AmazonEKS_CNI_Policy",
    "AmazonEC2ContainerRegistryReadOnly",
]

EKS_CLUSTER_ASSUME_ROLE_POLICY = """{
  "Version": "2012-10-17",
  "Statement": [
    {
      "Effect": "Allow",
      "Principal": {
        "Service": "eks.amazonaws.com"
      },
      "Action": "sts:AssumeRole"
    }
  ]
}"""

EKS_NODE_GROUP_ASSUME_ROLE_POLICY = """{
  "Version": "2012-10-17",
  "Statement": [
    {
      "Action": "sts:AssumeRole",
      "Effect": "Allow",
      "Principal": {
        "Service": "ec2.amazonaws.com"
      }
    },
    {
      "Action": "sts:AssumeRole",
      "Effect": "Allow",
      "Principal": {
        "Service": "es.amazonaws.com"
      }
    }
  ]
}"""

CLUSTER_AUTOSCALER_POLICY = """{
    "Version": "2012-10-17",
    "Statement": [
        {
            "Effect": "Allow",
            "Action": [
                "autoscaling:DescribeAutoScalingGroups",
                "autoscaling:DescribeAutoScalingInstances",
                "autoscaling:DescribeLaunchConfigurations",
                "autoscaling:DescribeTags",
                "autoscaling:SetDesiredCapacity",
                "autoscaling:TerminateInstanceInAutoScalingGroup"
            ],
            "Resource": "*"
        }
    ]
}"""

KUBECONFIG_TEMPLATE = """apiVersion: v1
clusters:
- cluster:
    certificate-authority-data: {certificate_authority_data}
    server: {endpoint}
  name: {entry_name}
contexts:
- context:
    cluster: {entry_name}
    user: {entry_name}
  name: {entry_name}
current-context: {entry_name}
kind: Config
preferences: {{}}
users:
- name: {entry_name}
  user:
    exec:
      apiVersion: client.authentication.k8s.io/v1alpha1
      args:
      - --region
      - {region}
      - eks
      - get-token
      - --cluster-name
      - {cluster_name}
      command: aws
"""


def managed_policy_arn(policy: str) -> str:
    return AWS_MANAGED_POLICY_ARN_PREFIX + policy


def render_kubeconfig(
    cluster_name: str,
    cluster_arn: str,
    endpoint: str,
    certificate_authority_data: str,
    region: str,
) -> str:
    """Render the exec-based kubeconfig for one cluster.

    The cluster, context and user entries are all named after the cluster ARN;
    the token is fetched with `aws eks get-token` for the cluster name.
    """
    return KUBECONFIG_TEMPLATE.format(
        certificate_authority_data=certificate_authority_data,
        endpoint=endpoint,
        entry_name=cluster_arn,
        region=region,
        cluster_name=cluster_name,
    )
