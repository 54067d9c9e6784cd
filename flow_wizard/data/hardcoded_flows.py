from flow_wizard.domain.models import (
    STRONG_SECRET,
    USERNAME_FROM_EMAIL,
    BranchTransition,
    ChoiceOption,
    Condition,
    ConditionalTransition,
    DerivationRule,
    FieldSpec,
    FlowDefinition,
    FormSection,
    ModuleSpec,
    StaticTransition,
    StepDefinition,
    SuggestedActionSpec,
    ValidationRule,
)
from flow_wizard.state.models import SourceReference

# ==============================================================================
# SHARED BUILDING BLOCKS
# ==============================================================================

CREDENTIAL_DERIVATIONS = [
    DerivationRule(target_field_id="username", source_field_ids=["email"], strategy=USERNAME_FROM_EMAIL),
    DerivationRule(target_field_id="tempPassword", source_field_ids=["email"], strategy=STRONG_SECRET),
]

EMAIL_RULES = [
    ValidationRule(field_id="email", rule="required", message="Email address is required"),
    ValidationRule(field_id="email", rule="email", message="Please enter a valid email address"),
]

DELIVERY_OPTIONS = [
    ChoiceOption(
        id="email",
        label="Email Delivery",
        description="Send leads directly to client email - simple and reliable",
        icon="Mail",
        badge="Popular",
        synonyms=["e-mail", "mail", "inbox"],
    ),
    ChoiceOption(
        id="webhook",
        label="HTTP Webhook",
        description="Real-time API delivery to client systems",
        icon="Webhook",
        synonyms=["api", "http", "post", "url"],
    ),
    ChoiceOption(
        id="ftp",
        label="FTP Delivery",
        description="File transfer protocol for batch delivery",
        icon="Database",
        synonyms=["sftp", "file transfer"],
    ),
    ChoiceOption(
        id="skip",
        label="Skip for Now",
        description="Set up delivery method later",
        icon="Clock",
        synonyms=["later", "not now", "none"],
    ),
]

PINGPOST_OPTION = ChoiceOption(
    id="pingpost",
    label="Ping Post",
    description="Bid on leads in real time before they are delivered",
    icon="Zap",
    badge="Advanced",
)


def _basic_info_step(next_step: str) -> StepDefinition:
    return StepDefinition(
        id="basic-info",
        kind="form",
        title="Basic Information",
        message="Let's start with the basics. Credentials are generated from the email address, and you can adjust them.",
        module=ModuleSpec(
            kind="form",
            props={
                "title": "Client Information",
                "description": "Enter basic client details. Credentials will be generated automatically.",
                "submitLabel": "Continue",
            },
            sections=[
                FormSection(
                    id="basic",
                    fields=[
                        FieldSpec(id="companyName", label="Company Name", required=True, placeholder="Enter company name"),
                        FieldSpec(id="email", label="Email Address", type="email", required=True, placeholder="Enter email address"),
                    ],
                ),
                FormSection(
                    id="credentials",
                    title="Client Credentials",
                    description="Username and password will be auto-generated when you enter a valid email",
                    fields=[
                        FieldSpec(id="username", label="Username", placeholder="Will be generated from email address"),
                        FieldSpec(id="tempPassword", label="Password", placeholder="Will be auto-generated securely"),
                    ],
                ),
            ],
            validation=[
                ValidationRule(field_id="companyName", rule="required", message="Company name is required"),
                *EMAIL_RULES,
            ],
        ),
        derivations=CREDENTIAL_DERIVATIONS,
        transition=StaticTransition(target=next_step),
        echo="Company: {{ companyName }}, Email: {{ email }}",
    )


def _delivery_variants(include_pingpost: bool = False) -> dict:
    variants = {
        "email": ModuleSpec(
            kind="form",
            props={"title": "Email Delivery Settings", "submitLabel": "Save Configuration"},
            sections=[
                FormSection(
                    id="email-settings",
                    fields=[
                        FieldSpec(id="emailAddress", label="Recipient Email", type="email", required=True, placeholder="client@example.com"),
                        FieldSpec(
                            id="emailFormat",
                            label="Email Format",
                            type="select",
                            default="html",
                            options=[{"value": "html", "label": "HTML"}, {"value": "text", "label": "Plain Text"}],
                        ),
                        FieldSpec(id="includeAttachment", label="Attach lead as CSV", type="checkbox", default=False),
                    ],
                )
            ],
            validation=[
                ValidationRule(field_id="emailAddress", rule="required", message="Recipient email is required"),
                ValidationRule(field_id="emailAddress", rule="email", message="Please enter a valid email address"),
            ],
        ),
        "webhook": ModuleSpec(
            kind="form",
            props={"title": "Webhook Settings", "submitLabel": "Save Configuration"},
            sections=[
                FormSection(
                    id="webhook-settings",
                    fields=[
                        FieldSpec(id="webhookUrl", label="Webhook URL", type="url", required=True, placeholder="https://api.example.com/leads"),
                        FieldSpec(
                            id="httpMethod",
                            label="HTTP Method",
                            type="select",
                            default="POST",
                            options=[{"value": "POST", "label": "POST"}, {"value": "PUT", "label": "PUT"}],
                        ),
                    ],
                )
            ],
            validation=[
                ValidationRule(field_id="webhookUrl", rule="required", message="Webhook URL is required"),
                ValidationRule(field_id="webhookUrl", rule="regex", pattern=r"^https?://\S+$", message="Webhook URL must start with http:// or https://"),
            ],
        ),
        "ftp": ModuleSpec(
            kind="form",
            props={"title": "FTP Settings", "submitLabel": "Save Configuration"},
            sections=[
                FormSection(
                    id="ftp-settings",
                    fields=[
                        FieldSpec(id="ftpHost", label="FTP Host", required=True, placeholder="ftp.example.com"),
                        FieldSpec(id="ftpPort", label="Port", type="number", required=True, default=21, min=1, max=65535),
                        FieldSpec(id="ftpUsername", label="FTP Username", required=True),
                        FieldSpec(id="ftpPassword", label="FTP Password", type="password", required=True),
                        FieldSpec(id="ftpDirectory", label="Upload Directory", placeholder="/leads"),
                    ],
                )
            ],
            validation=[
                ValidationRule(field_id="ftpHost", rule="required", message="FTP host is required"),
                ValidationRule(field_id="ftpPort", rule="min", limit=1, message="Port must be between 1 and 65535"),
                ValidationRule(field_id="ftpPort", rule="max", limit=65535, message="Port must be between 1 and 65535"),
                ValidationRule(field_id="ftpUsername", rule="required", message="FTP username is required"),
                ValidationRule(field_id="ftpPassword", rule="required", message="FTP password is required"),
            ],
        ),
    }
    if include_pingpost:
        variants["pingpost"] = ModuleSpec(
            kind="form",
            props={"title": "Ping Post Settings", "submitLabel": "Save Configuration"},
            sections=[
                FormSection(
                    id="pingpost-settings",
                    fields=[
                        FieldSpec(id="pingUrl", label="Ping URL", type="url", required=True),
                        FieldSpec(id="postUrl", label="Post URL", type="url", required=True),
                        FieldSpec(id="timeoutMs", label="Timeout (ms)", type="number", default=3000, min=100, max=30000),
                    ],
                )
            ],
            validation=[
                ValidationRule(field_id="pingUrl", rule="regex", pattern=r"^https?://\S+$", message="Ping URL must be a web address"),
                ValidationRule(field_id="postUrl", rule="regex", pattern=r"^https?://\S+$", message="Post URL must be a web address"),
                ValidationRule(field_id="timeoutMs", rule="min", limit=100, message="Timeout must be at least 100 ms"),
            ],
        )
    return variants


def _creation_step(next_step: str) -> StepDefinition:
    return StepDefinition(
        id="creation",
        kind="processing",
        title="Creating Client",
        message="Creating {{ companyName }} in LeadExec...",
        module=ModuleSpec(
            kind="process",
            props={
                "title": "Creating Client",
                "status": "processing",
                "details": [
                    "Creating client account",
                    "Generating secure credentials",
                    "Configuring delivery settings",
                    "Sending welcome email",
                ],
            },
        ),
        transition=StaticTransition(target=next_step),
        transient=True,
        provision="create-client",
    )


def _review_step(step_id: str, restart_flow_id: str) -> StepDefinition:
    return StepDefinition(
        id=step_id,
        kind="summary",
        title="Setup Complete",
        message="{{ companyName }} is ready to receive leads. Client ID: {{ clientId }}.",
        module=ModuleSpec(
            kind="summary",
            props={
                "title": "Client Setup Complete",
                "items": [
                    {"id": "client", "title": "Client Created", "subtitle": "{{ companyName }} ({{ clientId }})", "status": "success"},
                    {"id": "credentials", "title": "Credentials Generated", "subtitle": "Username: {{ username }}", "status": "success"},
                    {"id": "delivery", "title": "Delivery Method", "subtitle": "{{ deliveryMethod | default('Not configured') }}", "status": "success"},
                ],
            },
        ),
        suggested_actions=[
            SuggestedActionSpec(id="create-another", label="Create Another Client", kind="start-flow", target=restart_flow_id),
            SuggestedActionSpec(id="bulk-upload", label="Bulk Upload Clients", kind="start-flow", target="bulk-client-upload"),
            SuggestedActionSpec(id="delivery-tips", label="Delivery Best Practices", kind="help", target="delivery-methods", one_shot=False),
        ],
    )


# ==============================================================================
# FLOW: CREATE CLIENT
# ==============================================================================

create_client = FlowDefinition(
    id="create-client",
    name="Create New Client",
    description="Set up a new client with guided configuration including delivery methods and credentials",
    category="clients",
    tags=["client", "setup", "configuration", "credentials"],
    entry_step="basic-info",
    steps={
        "basic-info": _basic_info_step(next_step="delivery-method"),
        "delivery-method": StepDefinition(
            id="delivery-method",
            kind="choice",
            title="Delivery Method",
            message="How should leads be delivered to {{ companyName }}?",
            module=ModuleSpec(
                kind="choices",
                props={"title": "Choose Delivery Method", "mode": "single", "layout": "card"},
                options=DELIVERY_OPTIONS,
            ),
            value_field="deliveryMethod",
            # Skip converges on the shared configuration step
            transition=BranchTransition(
                branches={
                    "email": "delivery-config",
                    "webhook": "delivery-config",
                    "ftp": "delivery-config",
                    "skip": "configuration",
                }
            ),
        ),
        "delivery-config": StepDefinition(
            id="delivery-config",
            kind="form",
            title="Delivery Configuration",
            message="Great choice. Let's configure the delivery details.",
            variant_field="deliveryMethod",
            variants=_delivery_variants(),
            transition=StaticTransition(target="configuration"),
            echo="Delivery configuration saved",
        ),
        "configuration": StepDefinition(
            id="configuration",
            kind="form",
            title="Configuration",
            message="Almost done! Set the lead limits and preferences for {{ companyName }}.",
            module=ModuleSpec(
                kind="form",
                props={"title": "Client Configuration", "submitLabel": "Create Client"},
                sections=[
                    FormSection(
                        id="limits",
                        title="Lead Limits",
                        fields=[
                            FieldSpec(id="dailyLeadLimit", label="Daily Lead Limit", type="number", default=50, min=1, max=1000),
                            FieldSpec(id="leadPrice", label="Lead Price ($)", type="number", default=25, min=0),
                        ],
                    ),
                    FormSection(
                        id="preferences",
                        title="Preferences",
                        fields=[
                            FieldSpec(
                                id="leadTypes",
                                label="Lead Types",
                                type="select",
                                default="all",
                                options=[
                                    {"value": "all", "label": "All Lead Types"},
                                    {"value": "exclusive", "label": "Exclusive Only"},
                                    {"value": "shared", "label": "Shared Only"},
                                ],
                            ),
                            FieldSpec(id="excludeWeekends", label="Pause delivery on weekends", type="checkbox", default=False),
                        ],
                    ),
                ],
                validation=[
                    ValidationRule(field_id="dailyLeadLimit", rule="min", limit=1, message="Daily limit must be at least 1"),
                    ValidationRule(field_id="dailyLeadLimit", rule="max", limit=1000, message="Daily limit cannot exceed 1000"),
                    ValidationRule(field_id="leadPrice", rule="min", limit=0, message="Lead price cannot be negative"),
                ],
            ),
            transition=StaticTransition(target="creation"),
            echo="Final configuration saved",
        ),
        "creation": _creation_step(next_step="review"),
        "review": _review_step("review", restart_flow_id="create-client"),
    },
)

# ==============================================================================
# FLOW: BULK CLIENT UPLOAD
# ==============================================================================

bulk_client_upload = FlowDefinition(
    id="bulk-client-upload",
    name="Bulk Client Upload",
    description="Create many clients at once from an Excel or CSV file",
    category="clients",
    tags=["client", "bulk", "upload", "import"],
    entry_step="overview",
    steps={
        "overview": StepDefinition(
            id="overview",
            kind="plain-text",
            title="Bulk Upload Process",
            message="Here's how a bulk upload works. It only takes a few minutes.",
            module=ModuleSpec(
                kind="steps",
                props={
                    "variant": "overview",
                    "title": "Bulk Upload Process",
                    "showIndex": True,
                    "steps": [
                        {"id": "prepare", "title": "Prepare File", "hint": "Download template and prepare your data"},
                        {"id": "upload", "title": "Upload File", "hint": "Upload your Excel or CSV file"},
                        {"id": "validate", "title": "Validation", "hint": "System validates the data"},
                        {"id": "import", "title": "Processing", "hint": "Create clients and generate credentials"},
                        {"id": "results", "title": "Results", "hint": "Review upload results and next steps"},
                    ],
                },
            ),
            suggested_actions=[SuggestedActionSpec(id="start-bulk-upload", label="Start Bulk Upload")],
            transition=BranchTransition(branches={"start-bulk-upload": "prepare"}),
        ),
        "prepare": StepDefinition(
            id="prepare",
            kind="choice",
            title="Prepare Your Data",
            message="Your file needs one row per client with company name and email. Do you need our template?",
            module=ModuleSpec(
                kind="choices",
                props={"title": "Data Preparation", "mode": "single", "layout": "list"},
                options=[
                    ChoiceOption(id="download-template", label="Download Excel Template", icon="Download", synonyms=["template", "download"]),
                    ChoiceOption(id="use-own-file", label="I have my own file ready", icon="Upload", synonyms=["own file", "ready", "my file"]),
                ],
            ),
            value_field="templateChoice",
            transition=BranchTransition(
                branches={"download-template": "download-confirm", "use-own-file": "upload"}
            ),
        ),
        "download-confirm": StepDefinition(
            id="download-confirm",
            kind="plain-text",
            title="Template Downloaded",
            message="The template is downloading. Fill it in, then come back to upload it.",
            module=ModuleSpec(
                kind="alert",
                props={"type": "success", "title": "Template Downloaded", "fileName": "client-upload-template.xlsx"},
            ),
            suggested_actions=[SuggestedActionSpec(id="ready-to-upload", label="Ready to Upload")],
            transition=BranchTransition(branches={"ready-to-upload": "upload"}),
        ),
        "upload": StepDefinition(
            id="upload",
            kind="file-upload",
            title="Upload Client Data",
            message="Drop your completed file below.",
            module=ModuleSpec(
                kind="filedrop",
                props={"title": "Upload Client Data", "accept": ".xlsx,.xls,.csv", "maxSizeMb": 10, "multiple": False},
                validation=[
                    ValidationRule(field_id="files", rule="required", message="Please upload a file"),
                    ValidationRule(field_id="files", rule="accept", pattern=".xlsx,.xls,.csv", message="Only Excel or CSV files are supported"),
                ],
            ),
            value_field="files",
            transition=StaticTransition(target="validate"),
            echo="Uploaded {{ files | length }} file(s)",
        ),
        "validate": StepDefinition(
            id="validate",
            kind="processing",
            title="Validating Data",
            message="Checking your file for missing or invalid data...",
            module=ModuleSpec(kind="process", props={"title": "Validating Data", "status": "processing"}),
            transition=StaticTransition(target="import"),
            transient=True,
            provision="validate-upload",
        ),
        "import": StepDefinition(
            id="import",
            kind="processing",
            title="Processing Upload",
            message="{{ validRecords }} valid record(s) found. Creating the clients now...",
            module=ModuleSpec(
                kind="steps",
                props={
                    "title": "Processing Bulk Upload",
                    "steps": [
                        {"id": "create-accounts", "title": "Creating client accounts"},
                        {"id": "generate-credentials", "title": "Generating secure credentials"},
                        {"id": "setup-delivery", "title": "Setting up delivery methods"},
                        {"id": "send-emails", "title": "Sending welcome emails"},
                    ],
                },
            ),
            transition=StaticTransition(target="results"),
            transient=True,
            provision="bulk-import",
        ),
        "results": StepDefinition(
            id="results",
            kind="summary",
            title="Upload Complete",
            message="Bulk upload finished: {{ processedCount }} client(s) created.",
            module=ModuleSpec(
                kind="summary",
                props={
                    "title": "Bulk Upload Complete",
                    "items": [
                        {"id": "records", "title": "Records Processed", "subtitle": "{{ processedCount }} of {{ totalRecords }}", "status": "success"},
                        {"id": "batch", "title": "Batch ID", "subtitle": "{{ batchId }}", "status": "info"},
                    ],
                },
            ),
            suggested_actions=[
                SuggestedActionSpec(id="upload-another", label="Upload Another File", kind="start-flow", target="bulk-client-upload"),
                SuggestedActionSpec(id="create-single", label="Create Single Client", kind="start-flow", target="create-client"),
            ],
        ),
    },
)

# ==============================================================================
# FLOW: CREATE CLIENT (SIMPLIFIED, TYPED ANSWERS)
# ==============================================================================

create_client_simplified = FlowDefinition(
    id="create-client-simplified",
    name="Quick Client Setup",
    description="Create a client by answering a few questions in chat",
    category="clients",
    tags=["client", "quick", "chat"],
    entry_step="ask-company",
    steps={
        "ask-company": StepDefinition(
            id="ask-company",
            kind="plain-text",
            title="Company Name",
            message="Let's set up a new client. What's the company name?",
            capture_field="companyName",
            validation=[ValidationRule(field_id="companyName", rule="required", message="I need a company name to continue.")],
            transition=StaticTransition(target="ask-email"),
        ),
        "ask-email": StepDefinition(
            id="ask-email",
            kind="plain-text",
            title="Contact Email",
            message="What email address should we use for {{ companyName }}?",
            capture_field="email",
            validation=[
                ValidationRule(field_id="email", rule="required", message="I need an email address to continue."),
                ValidationRule(field_id="email", rule="email", message="That doesn't look like a valid email address."),
            ],
            derivations=CREDENTIAL_DERIVATIONS,
            transition=StaticTransition(target="ask-delivery"),
        ),
        "ask-delivery": StepDefinition(
            id="ask-delivery",
            kind="choice",
            title="Delivery Method",
            message="How should {{ companyName }} receive leads? Email, webhook, FTP, or skip for now?",
            module=ModuleSpec(kind="choices", props={"mode": "single", "layout": "inline"}, options=DELIVERY_OPTIONS),
            value_field="deliveryMethod",
            # Skip converges on the confirmation
            transition=BranchTransition(
                branches={
                    "email": "ask-recipient",
                    "webhook": "ask-webhook",
                    "ftp": "ask-ftp-host",
                    "skip": "confirm",
                }
            ),
        ),
        "ask-recipient": StepDefinition(
            id="ask-recipient",
            kind="plain-text",
            title="Recipient Email",
            message="Which address should receive the leads?",
            capture_field="emailAddress",
            validation=[ValidationRule(field_id="emailAddress", rule="email", message="That doesn't look like a valid email address.")],
            transition=StaticTransition(target="confirm"),
        ),
        "ask-webhook": StepDefinition(
            id="ask-webhook",
            kind="plain-text",
            title="Webhook URL",
            message="What's the webhook URL?",
            capture_field="webhookUrl",
            validation=[
                ValidationRule(field_id="webhookUrl", rule="regex", pattern=r"^https?://\S+$", message="The URL should start with http:// or https://."),
            ],
            transition=StaticTransition(target="confirm"),
        ),
        "ask-ftp-host": StepDefinition(
            id="ask-ftp-host",
            kind="plain-text",
            title="FTP Host",
            message="What's the FTP host name?",
            capture_field="ftpHost",
            validation=[ValidationRule(field_id="ftpHost", rule="required", message="I need the FTP host to continue.")],
            transition=StaticTransition(target="confirm"),
        ),
        "confirm": StepDefinition(
            id="confirm",
            kind="choice",
            title="Confirmation",
            message=(
                "Here's what I have: {{ companyName }} ({{ email }}), username {{ username }}, "
                "delivery {{ deliveryMethod }}. Shall I create the client?"
            ),
            module=ModuleSpec(
                kind="choices",
                props={"mode": "single", "layout": "inline"},
                options=[
                    ChoiceOption(id="create", label="Yes, create it", synonyms=["yes", "yep", "sure", "ok", "go ahead", "confirm"]),
                    ChoiceOption(id="cancel", label="No, cancel", synonyms=["no", "nope", "stop"]),
                ],
            ),
            value_field="confirmation",
            suggested_actions=[
                SuggestedActionSpec(id="change-delivery", label="Change delivery method", kind="jump-back", target="ask-delivery"),
            ],
            transition=BranchTransition(branches={"create": "creation", "cancel": "cancelled"}),
        ),
        "creation": _creation_step(next_step="done"),
        "done": _review_step("done", restart_flow_id="create-client-simplified"),
        "cancelled": StepDefinition(
            id="cancelled",
            kind="plain-text",
            title="Cancelled",
            message="No problem, nothing was created.",
            suggested_actions=[
                SuggestedActionSpec(id="start-over", label="Start Over", kind="start-flow", target="create-client-simplified"),
            ],
        ),
    },
)

# ==============================================================================
# FLOW: CREATE CLIENT (ADVANCED)
# ==============================================================================

create_client_advanced = FlowDefinition(
    id="create-client-advanced",
    name="Advanced Client Setup",
    description="Client setup with ping post delivery, delivery accounts and lead limits",
    category="clients",
    tags=["client", "setup", "pingpost", "limits"],
    entry_step="basic-info",
    steps={
        "basic-info": _basic_info_step(next_step="delivery-method"),
        "delivery-method": StepDefinition(
            id="delivery-method",
            kind="choice",
            title="Delivery Method",
            message="How should leads be delivered to {{ companyName }}?",
            module=ModuleSpec(
                kind="choices",
                props={"title": "Choose Delivery Method", "mode": "single", "layout": "card"},
                options=[*DELIVERY_OPTIONS[:3], PINGPOST_OPTION, DELIVERY_OPTIONS[3]],
            ),
            value_field="deliveryMethod",
            transition=BranchTransition(
                branches={
                    "email": "delivery-account",
                    "webhook": "delivery-account",
                    "ftp": "delivery-account",
                    "pingpost": "delivery-account",
                    "skip": "lead-limits",
                }
            ),
        ),
        "delivery-account": StepDefinition(
            id="delivery-account",
            kind="choice",
            title="Delivery Account",
            message="Should this delivery use a new delivery account or an existing one?",
            module=ModuleSpec(
                kind="choices",
                props={"mode": "single", "layout": "list"},
                options=[
                    ChoiceOption(id="new", label="Create a new delivery account", synonyms=["new account"]),
                    ChoiceOption(id="existing", label="Use an existing delivery account", synonyms=["existing account", "reuse"]),
                ],
            ),
            value_field="deliveryAccount",
            # Existing accounts are already configured
            transition=ConditionalTransition(
                rules=[(Condition(field="deliveryAccount", operator="equals", value="existing"), "lead-limits")],
                default="delivery-config",
            ),
        ),
        "delivery-config": StepDefinition(
            id="delivery-config",
            kind="form",
            title="Delivery Configuration",
            message="Let's configure the new delivery account.",
            variant_field="deliveryMethod",
            variants=_delivery_variants(include_pingpost=True),
            transition=StaticTransition(target="lead-limits"),
            echo="Delivery configuration saved",
        ),
        "lead-limits": StepDefinition(
            id="lead-limits",
            kind="form",
            title="Lead Limits",
            message="Set daily, weekly and monthly caps for {{ companyName }}.",
            module=ModuleSpec(
                kind="form",
                props={"title": "Lead Limits", "submitLabel": "Create Client"},
                sections=[
                    FormSection(
                        id="caps",
                        fields=[
                            FieldSpec(id="dailyLeadLimit", label="Daily Limit", type="number", default=50, min=1, max=1000),
                            FieldSpec(id="weeklyLeadLimit", label="Weekly Limit", type="number", default=250, min=1),
                            FieldSpec(id="monthlyLeadLimit", label="Monthly Limit", type="number", default=1000, min=1),
                            FieldSpec(id="leadPrice", label="Lead Price ($)", type="number", default=25, min=0),
                        ],
                    )
                ],
                validation=[
                    ValidationRule(field_id="dailyLeadLimit", rule="min", limit=1, message="Daily limit must be at least 1"),
                    ValidationRule(field_id="dailyLeadLimit", rule="max", limit=1000, message="Daily limit cannot exceed 1000"),
                    ValidationRule(field_id="weeklyLeadLimit", rule="min", limit=1, message="Weekly limit must be at least 1"),
                    ValidationRule(field_id="monthlyLeadLimit", rule="min", limit=1, message="Monthly limit must be at least 1"),
                ],
            ),
            transition=StaticTransition(target="creation"),
            echo="Lead limits saved",
        ),
        "creation": _creation_step(next_step="review"),
        "review": _review_step("review", restart_flow_id="create-client-advanced"),
    },
)

# ==============================================================================
# HELP SOURCES
# ==============================================================================

HELP_SOURCES = {
    "general": [
        SourceReference(id="getting-started", title="Getting Started with LeadExec", url="/docs/getting-started", kind="howto"),
        SourceReference(id="clients-overview", title="Managing Clients", url="/docs/clients", kind="article"),
    ],
    "clients": [
        SourceReference(id="create-client", title="Creating a Client", url="/docs/clients/create", kind="howto"),
        SourceReference(id="bulk-upload", title="Bulk Client Upload", url="/docs/clients/bulk-upload", kind="howto"),
    ],
    "best-practices": [
        SourceReference(id="best-practices", title="Lead Distribution Best Practices", url="/docs/best-practices", kind="article"),
    ],
    "delivery-methods": [
        SourceReference(id="delivery-email", title="Email Delivery", url="/docs/delivery/email", kind="howto"),
        SourceReference(id="delivery-webhook", title="Webhook Delivery", url="/docs/delivery/webhook", kind="api"),
        SourceReference(id="delivery-ftp", title="FTP Delivery", url="/docs/delivery/ftp", kind="howto"),
    ],
    "lead-routing": [
        SourceReference(id="lead-routing", title="Lead Routing and Distribution", url="/docs/routing", kind="article"),
    ],
}

# ==============================================================================
# REGISTRY
# ==============================================================================

HARDCODED_FLOWS = {
    flow.id: flow
    for flow in (create_client, bulk_client_upload, create_client_simplified, create_client_advanced)
}
