"""SMTP reply status codes."""

from enum import IntEnum


class StatusCodes(IntEnum):
    """Status codes an SMTP server can return to a client."""

    HelpMessage = 214
    SMTPServiceReady = 220
    ServiceClosingTransmissionChannel = 221
    AuthenticationSuccessful = 235
    OK = 250
    UserNotLocalWillForward = 251
    CannotVerifyUserButWillAcceptMessageAndAttemptDelivery = 252

    StartMailInput = 354

    ServiceNotAvailable = 421
    RequestedMailActionNotTakenMailboxUnavailable = 450
    RequestedActionAbortedLocalErrorInProcessing = 451
    InsufficientSystemStorage = 452
    ServerUnableToAccommodateParameters = 455

    SyntaxError = 500
    SyntaxErrorInParametersOrArguments = 501
    CommandNotImplemented = 502
    BadSequenceOfCommands = 503
    CommandParameterNotImplemented = 504
    ServerDoesNotAcceptMail = 521
    AuthenticationCredetialsInvalid = 535
    RecipientAddressRejected = 541
    RequestedActionNotTakenMailboxUnavailable = 550
    UserNotLocalTryForwarding = 551
    ExceededStorageAllocation = 552
    MailboxNameNotAllowed = 553
    TransactionFailed = 554

    def __str__(self) -> str:
        return str(self.value)