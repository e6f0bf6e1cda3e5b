"""Google Sheets, Drive and Contacts request bodies."""

from __future__ import annotations

from pydantic import Field

from .common import RequestModel


class GoogleServicesUpdate(RequestModel):
    calendar: bool | None = None
    sheets: bool | None = None
    drive: bool | None = None
    contacts: bool | None = None


class SheetsOptions(RequestModel):
    spreadsheet_id: str | None = Field(default=None, alias="spreadsheetId")
    sheet_name: str | None = Field(default=None, alias="sheetName")
    range: str | None = None
    append: bool = False
    template_type: str | None = Field(default=None, alias="templateType")
    import_contacts: bool = Field(default=False, alias="importContacts")


class SheetsRequest(RequestModel):
    action: str | None = None
    data: list[list] | None = None
    # contacts/deals/services: export CRM records instead of `data`
    entity: str | None = None
    options: SheetsOptions = Field(default_factory=SheetsOptions)


class GoogleContactFields(RequestModel):
    name: str | None = None
    first_name: str | None = Field(default=None, alias="firstName")
    last_name: str | None = Field(default=None, alias="lastName")
    email: str | None = None
    phone: str | None = None
    company: str | None = None

    def fields(self) -> dict:
        return self.model_dump(include={"name", "first_name", "last_name", "email", "phone", "company"})


class GoogleContactsRequest(GoogleContactFields):
    action: str | None = None
    contacts: list[dict] | None = None
    contact_map: dict[str, str] | None = Field(default=None, alias="contactMap")


class GoogleContactUpdate(GoogleContactFields):
    resource_name: str | None = Field(default=None, alias="resourceName")


class DriveRequest(RequestModel):
    action: str | None = None
    file_name: str | None = Field(default=None, alias="fileName")
    mime_type: str | None = Field(default=None, alias="mimeType")
    file_content: str | None = Field(default=None, alias="fileContent")
    folder_id: str | None = Field(default=None, alias="folderId")
    parents: list[str] | None = None
    folder_name: str | None = Field(default=None, alias="folderName")
    parent_folder_id: str | None = Field(default=None, alias="parentFolderId")
    file_id: str | None = Field(default=None, alias="fileId")
    folder_path: list[str] | None = Field(default=None, alias="folderPath")


class DriveShare(RequestModel):
    file_id: str | None = Field(default=None, alias="fileId")
    email: str | None = None
    role: str = "reader"
