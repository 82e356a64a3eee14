# Models package - normalized database models
from contactlists.models.user import User
from contactlists.models.contact import Contact, ContactStatus
from contactlists.models.contact_list import ContactList, ContactListMember, ListType, SubscriptionStatus
from contactlists.models.activity import ContactActivity, ActivityType
from contactlists.models.custom_field import ContactCustomField, CustomFieldType
from contactlists.models.contact_import import ContactImport, ImportStatus
