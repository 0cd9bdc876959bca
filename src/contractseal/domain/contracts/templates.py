"""Web development contract template.

Renders structured engagement terms and an editable list of clauses into the
contract body. The rendered text is ordinary payload content: it is encrypted
like any hand-written contract.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from contractseal.shared.exceptions import ValidationError

DEVELOPER_DESIGNATION = "Freelance Web and App Developer"
CURRENCY_SYMBOL = "£"


class ContractSection(BaseModel):
    """One numbered clause of a templated contract."""

    title: str
    content: str = ""


DEFAULT_SECTIONS: tuple[ContractSection, ...] = (
    ContractSection(
        title="Services",
        content=(
            "* Website design and layout\n"
            "* Front-end and back-end development\n"
            "* Integration of provided domain and email services\n"
            "* Testing and debugging\n"
            "* Deployment and final launch"
        ),
    ),
    ContractSection(
        title="Project Timeline",
        content=(
            "The project is expected to take approximately 100 to 140 hours to complete. "
            "The Developer will make reasonable efforts to complete the project within this "
            "timeframe. Any delays will be communicated promptly to the Client."
        ),
    ),
    ContractSection(
        title="Payment Terms",
        content=(
            "* Payment will be made in full upon completion of the project.\n"
            "* An invoice will be sent at the end of the project detailing the total hours "
            "worked and the total amount due.\n"
            "* Payments are due within 14 days of receipt of the final invoice."
        ),
    ),
    ContractSection(
        title="Client Responsibilities",
        content=(
            "The Client agrees to provide all necessary content, information, and access "
            "required for the completion of the project, including but not limited to:\n"
            "* Text, images, and other media\n"
            "* Timely feedback and approvals"
        ),
    ),
    ContractSection(
        title="Revisions and Changes",
        content=(
            "The Developer agrees to make revisions and changes to the project as requested "
            "by the Client. However, if the scope of work changes significantly, additional "
            "hours may be required and will be billed at the agreed hourly rate."
        ),
    ),
    ContractSection(
        title="Ownership and Rights",
        content=(
            "Upon full payment, the Client will own all rights to the completed website, "
            "including the code, design, and content provided by the Client. The Developer "
            "retains the right to use the project in their portfolio and for promotional "
            "purposes."
        ),
    ),
    ContractSection(
        title="Confidentiality",
        content=(
            "Both parties agree to keep all information related to the project confidential "
            "and not disclose it to any third party without prior written consent, except as "
            "necessary for the completion of the project."
        ),
    ),
    ContractSection(
        title="Termination",
        content=(
            "Either party may terminate this contract with 14 days' written notice. In the "
            "event of termination, the Client will pay for all hours worked up to the "
            "termination date."
        ),
    ),
    ContractSection(
        title="Governing Law",
        content=(
            "This Contract shall be governed by and construed in accordance with the laws "
            "of [Your Country/Region]."
        ),
    ),
    ContractSection(
        title="Entire Agreement",
        content=(
            "This Contract constitutes the entire agreement between the parties and "
            "supersedes all prior agreements, understandings, and representations."
        ),
    ),
)


class WebDevelopmentTerms(BaseModel):
    """Engagement terms filled into the web development template."""

    model_config = ConfigDict(populate_by_name=True)

    client_name: str = Field(alias="clientName")
    client_address: str = Field(default="", alias="clientAddress")
    client_email: str = Field(alias="clientEmail")
    developer_name: str = Field(alias="developerName")
    developer_address: str = Field(default="", alias="developerAddress")
    developer_email: str = Field(default="", alias="developerEmail")
    hourly_rate: Decimal = Field(ge=0, alias="hourlyRate")
    estimated_min_total: Decimal = Field(ge=0, alias="estimatedMinTotal")
    estimated_max_total: Decimal = Field(ge=0, alias="estimatedMaxTotal")
    hosting_fee: Decimal = Field(ge=0, alias="hostingFee")


def default_sections() -> list[ContractSection]:
    return [section.model_copy() for section in DEFAULT_SECTIONS]


def template_title(terms: WebDevelopmentTerms) -> str:
    return f"Web Development Contract for {terms.client_name}"


def _money(amount: Decimal) -> str:
    return f"{CURRENCY_SYMBOL}{amount}"


def render_web_development_contract(
    terms: WebDevelopmentTerms,
    sections: list[ContractSection],
    contract_date: datetime,
) -> str:
    """Render the contract body with sections numbered from 1.

    Raises:
        ValidationError: The cost range is inverted or a section has no title.
    """
    if terms.estimated_min_total > terms.estimated_max_total:
        raise ValidationError(
            "Estimated minimum total cannot exceed the maximum",
            details={
                "estimated_min_total": str(terms.estimated_min_total),
                "estimated_max_total": str(terms.estimated_max_total),
            },
        )
    untitled = [index for index, section in enumerate(sections, 1) if not section.title.strip()]
    if untitled:
        raise ValidationError("Every section needs a title", details={"sections": untitled})

    date_text = f"{contract_date:%B} {contract_date.day}, {contract_date.year}"
    lines = [
        "**Web Development Contract**",
        f"**Contract Date:** {date_text}",
        "",
        "**Client:**",
        f"* **Name:** {terms.client_name}",
        f"* **Address:** {terms.client_address}",
        f"* **Email:** {terms.client_email}",
        "",
        "**Developer:**",
        f"* **Name:** {terms.developer_name}",
        f"* **Title:** {DEVELOPER_DESIGNATION}",
        f"* **Address:** {terms.developer_address}",
        f"* **Email:** {terms.developer_email}",
        "",
        "**Compensation**",
        f"* **Hourly Rate:** {_money(terms.hourly_rate)}",
        f"* **Estimated Total Cost:** {_money(terms.estimated_min_total)} to "
        f"{_money(terms.estimated_max_total)} (based on estimated hours of completion)",
        "",
        "**Hosting Fees**",
        f"Upon completion of the project, a hosting fee of {_money(terms.hosting_fee)} per "
        "month will be charged as a subscription. This fee will cover the hosting services "
        "for the Client's website.",
        "",
    ]
    for number, section in enumerate(sections, 1):
        lines += [f"**{number}. {section.title}**", section.content, ""]
    lines += [
        "**Signatures**",
        "",
        "**Client:**",
        terms.client_name,
        "",
        "**Developer:**",
        terms.developer_name,
        DEVELOPER_DESIGNATION,
    ]
    return "\n".join(lines) + "\n"
