"""`capi certificate-manager config aws` commands.

These provision and inspect the AWS side of the certificate-manager
integration: a CloudFormation stack holding the certificate recipient and the
Route53 DNS challenge updater Lambdas, plus two membrane-exported capabilities
that let the certificate-manager service invoke them.
"""

from __future__ import annotations

import argparse
import json
import os
import secrets
from dataclasses import dataclass, field
from enum import Enum
from importlib import resources
from typing import Any, Callable, Sequence

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from capi.cli.common import (
    EXIT_FAILURE,
    EXIT_SUCCESS,
    FlagRelations,
    add_service_options,
    print_error_json,
    resolve_capability,
    to_json,
)
from capi.cli.store import CredentialStore
from capi.cli.workflow import Step, WorkflowState, progress_dots, run_steps
from capi.client import MembraneClient
from capi.errors import CapiError, NotFoundError, ProvisioningError
from capi.schemas import Aws4HmacSha256, CreateMembraneRequest, ExportRequest, HmacConfig

PUBLIC_LAMBDAS_S3_BUCKET_ENV_VAR = "CAPI_PUBLIC_LAMBDAS_S3_BUCKET"
DEFAULT_PUBLIC_LAMBDAS_S3_BUCKET = "capability-io-public-lambdas"
CERTIFICATE_RECIPIENT_COMPONENT = "certificate-manager-aws-certificate-recipient"
CHALLENGE_UPDATER_COMPONENT = "certificate-manager-aws-route53-dns-challenge-updater"

STACK_NAME_PREFIX = "certificate-manager-integration-"
STACK_CAPABILITIES = ("CAPABILITY_IAM", "CAPABILITY_NAMED_IAM")
INTEGRATION_TAGS = {
    "provider": "capability.io",
    "service": "certificate-manager",
    "service:component": "aws-integration",
}
VERSION_TAG = "service:component:version"

# Smallest duration STS accepted when this was written.
ASSUME_ROLE_DURATION_SECONDS = 900
PROGRESS_INTERVAL_SECONDS = 5.0

AWS_FAILURES: tuple[type[BaseException], ...] = (CapiError, BotoCoreError, ClientError)

AWS_RELATIONS = FlagRelations(
    implies={
        "aws_assume_role_account": ("aws_assume_role_name",),
        "aws_assume_role_name": ("aws_assume_role_account",),
    }
)


class InitStep(Enum):
    START = "start"
    ASSUME_ROLE_IF_NEEDED = "assume role if needed"
    SETUP_CLIENTS = "setup aws clients"
    GET_CALLER_IDENTITY = "get caller identity"
    DISCOVER_CERTIFICATE_RECIPIENT = "discover latest certificate-recipient version"
    DISCOVER_CHALLENGE_UPDATER = "discover latest challenge-updater version"
    GENERATE_USERDATA = "generate route53DNSChallengeUpdater userdata"
    READ_TEMPLATE = "read cloudformation template"
    CREATE_STACK = "create stack"
    WAIT_STACK_CREATE = "wait on stack creation"
    CREATE_MEMBRANE = "create membrane"
    EXPORT_RECEIVE_CERTIFICATE = "export ReceiveCertificate capability"
    EXPORT_UPDATE_CHALLENGE = "export UpdateChallenge capability"
    SET_ACTIVE_CAPABILITIES = "set active capabilities"
    WAIT_STACK_UPDATE = "wait on stack update"
    SHOW_STACK_EVENTS = "show stack events"


class UpdateStep(Enum):
    START = "start"
    ASSUME_ROLE_IF_NEEDED = "assume role if needed"
    SETUP_CLIENTS = "setup aws clients"
    DISCOVER_CERTIFICATE_RECIPIENT = "discover latest certificate-recipient version"
    DISCOVER_CHALLENGE_UPDATER = "discover latest challenge-updater version"
    RETRIEVE_STACK = "retrieve current stack"
    READ_TEMPLATE = "read cloudformation template"
    UPDATE_STACK = "update stack"
    WAIT_STACK_UPDATE = "wait on stack update"
    SHOW_STACK_EVENTS = "show stack events"


class DescribeStep(Enum):
    START = "start"
    ASSUME_ROLE_IF_NEEDED = "assume role if needed"
    SETUP_CLIENTS = "setup aws clients"
    RETRIEVE_STACKS = "retrieve stacks"


@dataclass(frozen=True)
class IntegrationSettings:
    aws_region: str
    aws_profile: str | None = None
    assume_role_account: str | None = None
    assume_role_name: str | None = None
    config_version: str | None = None
    certificates_bucket_prefix: str | None = None
    trusted_ca: Sequence[str] | None = None

    @property
    def stack_name(self) -> str | None:
        if not self.config_version:
            return None
        return f"{STACK_NAME_PREFIX}{self.config_version}"

    @property
    def role_arn(self) -> str:
        return f"arn:aws:iam::{self.assume_role_account}:role/{self.assume_role_name}"


@dataclass(frozen=True)
class ProvisioningContext:
    settings: IntegrationSettings
    stderr: Any
    session_factory: Callable[..., Any] = boto3.Session
    membrane_factory: Callable[..., MembraneClient] = MembraneClient
    public_lambdas_bucket: str = DEFAULT_PUBLIC_LAMBDAS_S3_BUCKET
    progress_interval: float = PROGRESS_INTERVAL_SECONDS

    def log(self, message: str) -> None:
        print(message, file=self.stderr)


@dataclass
class AwsClients:
    cloudformation: Any
    s3: Any
    sts: Any


@dataclass
class ProvisioningState(WorkflowState):
    context: ProvisioningContext | None = None
    caller_type: str = "user"
    session: Any = None
    aws: AwsClients | None = None
    caller_identity: str | None = None
    latest: dict[str, str] = field(default_factory=dict)
    userdata: str | None = None
    template: str | None = None
    stack_name: str | None = None
    stack: dict | None = None
    outputs: dict[str, str] = field(default_factory=dict)
    membrane_capability: str | None = None
    membrane_client: MembraneClient | None = None
    membrane: dict | None = None
    capabilities: dict[str, str] = field(default_factory=dict)
    stacks: list[dict] = field(default_factory=list)

    @property
    def ctx(self) -> ProvisioningContext:
        assert self.context is not None
        return self.context


# Shared steps


def _start(state: ProvisioningState) -> ProvisioningState:
    settings = state.ctx.settings
    state.session = state.ctx.session_factory(
        profile_name=settings.aws_profile,
        region_name=settings.aws_region,
    )
    return state


def _assume_role_if_needed(state: ProvisioningState) -> ProvisioningState:
    settings = state.ctx.settings
    if not settings.assume_role_account:
        return state
    sts = state.session.client("sts", region_name=settings.aws_region)
    response = sts.assume_role(
        DurationSeconds=ASSUME_ROLE_DURATION_SECONDS,
        RoleArn=settings.role_arn,
        RoleSessionName=secrets.token_hex(32),
    )
    credentials = response["Credentials"]
    state.session = state.ctx.session_factory(
        aws_access_key_id=credentials["AccessKeyId"],
        aws_secret_access_key=credentials["SecretAccessKey"],
        aws_session_token=credentials["SessionToken"],
        region_name=settings.aws_region,
    )
    state.caller_type = "role"
    return state


def _setup_clients(state: ProvisioningState) -> ProvisioningState:
    region = state.ctx.settings.aws_region
    state.aws = AwsClients(
        cloudformation=state.session.client("cloudformation", region_name=region),
        s3=state.session.client("s3", region_name=region),
        sts=state.session.client("sts", region_name=region),
    )
    return state


def _discover_latest(component: str) -> Callable[[ProvisioningState], ProvisioningState]:
    def _discover(state: ProvisioningState) -> ProvisioningState:
        state.ctx.log(f"Retrieving latest {component} version")
        response = state.aws.s3.get_object(
            Bucket=state.ctx.public_lambdas_bucket,
            Key=f"{component}/latest",
        )
        version = response["Body"].read().decode("utf-8").strip()
        if not version:
            raise NotFoundError(f"Not Found: latest {component} version")
        state.latest[component] = version
        state.ctx.log(f"Retrieved latest {component} version: {version}")
        return state

    return _discover


def _read_template(state: ProvisioningState) -> ProvisioningState:
    state.template = (
        resources.files("capi.cli").joinpath("cloudformation.yaml").read_text(encoding="utf-8")
    )
    return state


def _describe_stack(state: ProvisioningState) -> dict:
    try:
        response = state.aws.cloudformation.describe_stacks(StackName=state.stack_name)
    except ClientError as exc:
        if _is_missing_stack(exc):
            raise NotFoundError(f"Not Found: {state.stack_name}") from exc
        raise
    stacks = response.get("Stacks") or []
    if not stacks:
        raise NotFoundError(f"Not Found: {state.stack_name}")
    return stacks[0]


def _is_missing_stack(exc: ClientError) -> bool:
    error = exc.response.get("Error", {})
    return error.get("Code") == "ValidationError" and "does not exist" in str(error.get("Message"))


def _stack_outputs(stack: dict) -> dict[str, str]:
    return {output["OutputKey"]: output["OutputValue"] for output in stack.get("Outputs") or []}


def _required_output(state: ProvisioningState, key: str) -> str:
    value = state.outputs.get(key)
    if not value:
        raise NotFoundError(f"stack {state.stack_name} has no {key} output")
    return value


def _wait_for(state: ProvisioningState, waiter_name: str) -> None:
    waiter = state.aws.cloudformation.get_waiter(waiter_name)
    with progress_dots(state.ctx.stderr, interval=state.ctx.progress_interval):
        waiter.wait(StackName=state.stack_name)


def _parameters_with_overrides(stack: dict, overrides: dict[str, str]) -> list[dict]:
    parameters = []
    for parameter in stack.get("Parameters") or []:
        key = parameter["ParameterKey"]
        if key in overrides:
            parameters.append({"ParameterKey": key, "ParameterValue": overrides[key]})
        else:
            parameters.append({"ParameterKey": key, "UsePreviousValue": True})
    return parameters


def _update_stack(state: ProvisioningState, overrides: dict[str, str]) -> None:
    state.aws.cloudformation.update_stack(
        StackName=state.stack["StackName"],
        TemplateBody=state.template,
        Capabilities=list(state.stack.get("Capabilities") or STACK_CAPABILITIES),
        Parameters=_parameters_with_overrides(state.stack, overrides),
        Tags=state.stack.get("Tags") or [],
    )


def _wait_stack_update(state: ProvisioningState) -> ProvisioningState:
    state.ctx.log(f"Updating {state.stack_name} AWS CloudFormation stack")
    _wait_for(state, "stack_update_complete")
    state.ctx.log(f"Updating {state.stack_name} AWS CloudFormation stack SUCCEEDED")
    return state


def show_stack_events(state: ProvisioningState) -> ProvisioningState:
    stderr = state.ctx.stderr
    try:
        response = state.aws.cloudformation.describe_stack_events(StackName=state.stack_name)
    except (BotoCoreError, ClientError) as exc:
        print("", file=stderr)
        print_error_json(stderr, exc)
        print("Unable to retrieve error details", file=stderr)
        return state
    print("", file=stderr)
    for event in response.get("StackEvents") or []:
        timestamp = event.get("Timestamp")
        if hasattr(timestamp, "isoformat"):
            timestamp = timestamp.isoformat()
        reason = event.get("ResourceStatusReason")
        line = f"{timestamp} {event.get('ResourceStatus')} {event.get('ResourceType')}"
        print(f"{line} - {reason}" if reason else line, file=stderr)
    return state


# init


def _get_caller_identity(state: ProvisioningState) -> ProvisioningState:
    response = state.aws.sts.get_caller_identity()
    state.caller_identity = response["UserId"].split(":")[0]
    return state


def _generate_userdata(state: ProvisioningState) -> ProvisioningState:
    userdata: dict[str, Any] = {"stderrTelemetry": True}
    trusted_ca = state.ctx.settings.trusted_ca
    if trusted_ca:
        userdata["tls"] = {"trustedCA": list(trusted_ca)}
    state.userdata = json.dumps(userdata)
    return state


def _create_stack(state: ProvisioningState) -> ProvisioningState:
    settings = state.ctx.settings
    caller = (
        state.caller_identity if state.caller_type == "user" else f"{state.caller_identity}:*"
    )
    state.ctx.log(f"Creating {state.stack_name} AWS CloudFormation stack")
    state.aws.cloudformation.create_stack(
        StackName=state.stack_name,
        TemplateBody=state.template,
        Capabilities=list(STACK_CAPABILITIES),
        Parameters=[
            {"ParameterKey": "CallerIdentity", "ParameterValue": caller},
            {
                "ParameterKey": "CertificateRecipientLambdaVersion",
                "ParameterValue": state.latest[CERTIFICATE_RECIPIENT_COMPONENT],
            },
            {
                "ParameterKey": "CertificatesS3BucketName",
                "ParameterValue": settings.certificates_bucket_prefix,
            },
            {
                "ParameterKey": "Route53DNSChallengeUpdaterLambdaUserData",
                "ParameterValue": state.userdata,
            },
            {
                "ParameterKey": "Route53DNSChallengeUpdaterLambdaVersion",
                "ParameterValue": state.latest[CHALLENGE_UPDATER_COMPONENT],
            },
            {"ParameterKey": "Version", "ParameterValue": settings.config_version},
        ],
        Tags=[{"Key": key, "Value": value} for key, value in INTEGRATION_TAGS.items()]
        + [{"Key": VERSION_TAG, "Value": settings.config_version}],
    )
    return state


def _wait_stack_create(state: ProvisioningState) -> ProvisioningState:
    _wait_for(state, "stack_create_complete")
    state.ctx.log(f"Creating {state.stack_name} AWS CloudFormation stack SUCCEEDED")
    state.stack = _describe_stack(state)
    state.outputs = _stack_outputs(state.stack)
    return state


def _create_membrane(state: ProvisioningState) -> ProvisioningState:
    membrane_id = state.stack_name
    state.ctx.log(f"Creating {membrane_id} membrane")
    state.membrane_client = state.ctx.membrane_factory(trusted_ca=state.ctx.settings.trusted_ca)
    response = state.membrane_client.create(
        state.membrane_capability,
        CreateMembraneRequest(id=membrane_id),
    )
    if not isinstance(response, dict) or not (response.get("capabilities") or {}).get("export"):
        raise NotFoundError(f"membrane {membrane_id} response has no export capability")
    state.membrane = response
    state.ctx.log(f"Creating {membrane_id} membrane SUCCEEDED")
    return state


def _lambda_export(
    *, function_output: str, invocation_type: str, capability_key: str, label: str
) -> Callable[[ProvisioningState], ProvisioningState]:
    def _export(state: ProvisioningState) -> ProvisioningState:
        region = state.ctx.settings.aws_region
        state.ctx.log(f"Exporting {label} capability")
        function_name = _required_output(state, function_output)
        request = ExportRequest(
            uri=(
                f"https://lambda.{region}.amazonaws.com/2015-03-31/functions/"
                f"{function_name}/invocations"
            ),
            method="POST",
            allow_query=False,
            headers={"X-Amz-Invocation-Type": invocation_type, "X-Amz-Log-Type": "None"},
            hmac=HmacConfig(
                aws4_hmac_sha256=Aws4HmacSha256(
                    aws_access_key_id=_required_output(
                        state, "CertificateManagerServiceUserAccessKeyId"
                    ),
                    region=region,
                    service="lambda",
                    secret_access_key=_required_output(
                        state, "CertificateManagerServiceUserSecretAccessKey"
                    ),
                )
            ),
        )
        response = state.membrane_client.export(state.membrane["capabilities"]["export"], request)
        if not isinstance(response, dict) or not response.get("capability"):
            raise NotFoundError(f"export of {label} capability returned no capability")
        state.capabilities[capability_key] = response["capability"]
        state.ctx.log(f"Exporting {label} capability SUCCEEDED")
        return state

    return _export


def _set_active_capabilities(state: ProvisioningState) -> ProvisioningState:
    _update_stack(
        state,
        {
            "ReceiveCertificateCapability": state.capabilities["receiveCertificate"],
            "UpdateChallengeCapability": state.capabilities["updateChallenge"],
        },
    )
    return state


INIT_STEPS: tuple[Step[ProvisioningState], ...] = (
    Step(InitStep.START, _start),
    Step(InitStep.ASSUME_ROLE_IF_NEEDED, _assume_role_if_needed),
    Step(InitStep.SETUP_CLIENTS, _setup_clients),
    Step(InitStep.GET_CALLER_IDENTITY, _get_caller_identity),
    Step(
        InitStep.DISCOVER_CERTIFICATE_RECIPIENT,
        _discover_latest(CERTIFICATE_RECIPIENT_COMPONENT),
    ),
    Step(InitStep.DISCOVER_CHALLENGE_UPDATER, _discover_latest(CHALLENGE_UPDATER_COMPONENT)),
    Step(InitStep.GENERATE_USERDATA, _generate_userdata),
    Step(InitStep.READ_TEMPLATE, _read_template),
    Step(InitStep.CREATE_STACK, _create_stack, after_stack_mutation=True),
    Step(InitStep.WAIT_STACK_CREATE, _wait_stack_create, after_stack_mutation=True),
    Step(InitStep.CREATE_MEMBRANE, _create_membrane, after_stack_mutation=True),
    Step(
        InitStep.EXPORT_RECEIVE_CERTIFICATE,
        _lambda_export(
            function_output="CertificateRecipientLambda",
            invocation_type="RequestResponse",
            capability_key="receiveCertificate",
            label="ReceiveCertificate",
        ),
        after_stack_mutation=True,
    ),
    Step(
        InitStep.EXPORT_UPDATE_CHALLENGE,
        _lambda_export(
            function_output="Route53DNSChallengeUpdaterLambda",
            invocation_type="Event",
            capability_key="updateChallenge",
            label="UpdateChallenge",
        ),
        after_stack_mutation=True,
    ),
    Step(InitStep.SET_ACTIVE_CAPABILITIES, _set_active_capabilities, after_stack_mutation=True),
    Step(InitStep.WAIT_STACK_UPDATE, _wait_stack_update, after_stack_mutation=True),
)


# update


def _retrieve_stack(state: ProvisioningState) -> ProvisioningState:
    state.stack = _describe_stack(state)
    return state


def _update_versions(state: ProvisioningState) -> ProvisioningState:
    _update_stack(
        state,
        {
            "CertificateRecipientLambdaVersion": state.latest[CERTIFICATE_RECIPIENT_COMPONENT],
            "Route53DNSChallengeUpdaterLambdaVersion": state.latest[CHALLENGE_UPDATER_COMPONENT],
        },
    )
    return state


UPDATE_STEPS: tuple[Step[ProvisioningState], ...] = (
    Step(UpdateStep.START, _start),
    Step(UpdateStep.ASSUME_ROLE_IF_NEEDED, _assume_role_if_needed),
    Step(UpdateStep.SETUP_CLIENTS, _setup_clients),
    Step(
        UpdateStep.DISCOVER_CERTIFICATE_RECIPIENT,
        _discover_latest(CERTIFICATE_RECIPIENT_COMPONENT),
    ),
    Step(UpdateStep.DISCOVER_CHALLENGE_UPDATER, _discover_latest(CHALLENGE_UPDATER_COMPONENT)),
    Step(UpdateStep.RETRIEVE_STACK, _retrieve_stack),
    Step(UpdateStep.READ_TEMPLATE, _read_template),
    Step(UpdateStep.UPDATE_STACK, _update_versions, after_stack_mutation=True),
    Step(UpdateStep.WAIT_STACK_UPDATE, _wait_stack_update, after_stack_mutation=True),
)


# describe


def is_integration_stack(stack: dict) -> bool:
    tags = {tag.get("Key"): tag.get("Value") for tag in stack.get("Tags") or []}
    return all(tags.get(key) == value for key, value in INTEGRATION_TAGS.items())


def _retrieve_stacks(state: ProvisioningState) -> ProvisioningState:
    next_token: str | None = None
    while True:
        params: dict[str, str] = {}
        if state.stack_name:
            params["StackName"] = state.stack_name
        if next_token:
            params["NextToken"] = next_token
        try:
            response = state.aws.cloudformation.describe_stacks(**params)
        except ClientError as exc:
            if state.stack_name and _is_missing_stack(exc):
                break
            raise
        state.stacks.extend(
            stack for stack in response.get("Stacks") or [] if is_integration_stack(stack)
        )
        next_token = response.get("NextToken")
        if not next_token:
            break
    if not state.stacks:
        if state.stack_name:
            raise NotFoundError(f"Not Found: {state.stack_name}")
        raise NotFoundError("Not Found: did not find any integration configurations")
    return state


DESCRIBE_STEPS: tuple[Step[ProvisioningState], ...] = (
    Step(DescribeStep.START, _start),
    Step(DescribeStep.ASSUME_ROLE_IF_NEEDED, _assume_role_if_needed),
    Step(DescribeStep.SETUP_CLIENTS, _setup_clients),
    Step(DescribeStep.RETRIEVE_STACKS, _retrieve_stacks),
)


# command wiring


def _report_error(step: Step[ProvisioningState], state: ProvisioningState, exc: BaseException) -> None:
    stderr = state.ctx.stderr
    if isinstance(exc, NotFoundError):
        print("FAILED", file=stderr)
        print(str(exc), file=stderr)
    else:
        print_error_json(stderr, exc)
    if step.after_stack_mutation:
        # Only InitStep and UpdateStep have stack-mutating steps.
        state.history.append(type(step.name).SHOW_STACK_EVENTS.value)
        show_stack_events(state)


def run_workflow(
    steps: Sequence[Step[ProvisioningState]], state: ProvisioningState
) -> ProvisioningState:
    return run_steps(steps, state, failure_types=AWS_FAILURES, on_error=_report_error)


def _settings_from_args(args: argparse.Namespace) -> IntegrationSettings:
    return IntegrationSettings(
        aws_region=args.aws_region,
        aws_profile=args.aws_profile,
        assume_role_account=args.aws_assume_role_account,
        assume_role_name=args.aws_assume_role_name,
        config_version=getattr(args, "config_version", None),
        certificates_bucket_prefix=getattr(args, "certificates_s3_bucket_name_prefix", None),
        trusted_ca=args.trusted_ca,
    )


def build_context(args: argparse.Namespace, *, stderr) -> ProvisioningContext:
    bucket = os.getenv(PUBLIC_LAMBDAS_S3_BUCKET_ENV_VAR, "").strip()
    return ProvisioningContext(
        settings=_settings_from_args(args),
        stderr=stderr,
        session_factory=boto3.Session,
        membrane_factory=MembraneClient,
        public_lambdas_bucket=bucket or DEFAULT_PUBLIC_LAMBDAS_S3_BUCKET,
    )


def run_init(args: argparse.Namespace, *, store: CredentialStore, stdout, stderr) -> int:
    membrane_capability = resolve_capability(args, service="membrane", name="create", store=store)
    context = build_context(args, stderr=stderr)
    state = ProvisioningState(
        context=context,
        stack_name=context.settings.stack_name,
        membrane_capability=membrane_capability,
    )
    try:
        state = run_workflow(INIT_STEPS, state)
    except ProvisioningError:
        return EXIT_FAILURE
    print(
        to_json(
            {
                "capabilities": {
                    "receiveCertificate": state.capabilities["receiveCertificate"],
                    "updateChallenge": state.capabilities["updateChallenge"],
                }
            }
        ),
        file=stdout,
    )
    return EXIT_SUCCESS


def run_update(args: argparse.Namespace, *, store: CredentialStore, stdout, stderr) -> int:
    context = build_context(args, stderr=stderr)
    state = ProvisioningState(context=context, stack_name=context.settings.stack_name)
    try:
        state = run_workflow(UPDATE_STEPS, state)
    except ProvisioningError:
        return EXIT_FAILURE
    print(
        to_json(
            {
                "stackName": state.stack_name,
                "versions": {
                    "certificateRecipient": state.latest[CERTIFICATE_RECIPIENT_COMPONENT],
                    "challengeUpdater": state.latest[CHALLENGE_UPDATER_COMPONENT],
                },
            }
        ),
        file=stdout,
    )
    return EXIT_SUCCESS


def run_describe(args: argparse.Namespace, *, store: CredentialStore, stdout, stderr) -> int:
    context = build_context(args, stderr=stderr)
    state = ProvisioningState(context=context, stack_name=context.settings.stack_name)
    try:
        state = run_workflow(DESCRIBE_STEPS, state)
    except ProvisioningError:
        return EXIT_FAILURE
    print(to_json(state.stacks), file=stdout)
    return EXIT_SUCCESS


def add_parser(sub) -> None:
    aws = sub.add_parser("aws", help="AWS integration configuration.")
    aws_sub = aws.add_subparsers(dest="aws_command", required=True)

    def leaf(name: str, help_text: str) -> argparse.ArgumentParser:
        parser = aws_sub.add_parser(name, help=help_text)
        add_service_options(parser, service="certificate-manager")
        group = parser.add_argument_group("aws options")
        group.add_argument("--aws-region", default="us-east-1", help="AWS region to use.")
        group.add_argument(
            "--aws-profile",
            default=None,
            help="AWS shared credentials profile to use.",
        )
        group.add_argument(
            "--aws-assume-role-account",
            default=None,
            help="AWS account id of the role to assume.",
        )
        group.add_argument(
            "--aws-assume-role-name",
            default=None,
            help="Name of the role to assume in --aws-assume-role-account.",
        )
        parser.set_defaults(flag_relations=AWS_RELATIONS)
        return parser

    init = leaf("init", "Initialize.")
    init.add_argument(
        "--certificates-s3-bucket-name-prefix",
        required=True,
        help="Prefix for the name of the S3 bucket that will contain your certificates.",
    )
    init.add_argument(
        "--config-version",
        required=True,
        help="Version string to uniquely identify integration configuration.",
    )
    init.set_defaults(handler=run_init)

    update = leaf("update", "Update.")
    update.add_argument(
        "--config-version",
        required=True,
        help="Version string to uniquely identify integration configuration.",
    )
    update.set_defaults(handler=run_update)

    describe = leaf("describe", "Describe.")
    describe.add_argument(
        "--config-version",
        default=None,
        help="Integration configuration version to describe.",
    )
    describe.set_defaults(handler=run_describe)
