from schemas import (
    CalendarSeed,
    CaseTemplate,
    CourtInfo,
    Domain,
    EventCard,
    EventSeed,
    IncidentRule,
    Level,
    ObjectionSeed,
    PartySlot,
    PieceSeed,
    TrialStageTemplate,
)

ALL_LEVELS = [Level.BEGINNER, Level.INTERMEDIATE, Level.ADVANCED]

CITIES = ["Kinshasa", "Lubumbashi", "Goma", "Kolwezi", "Bukavu", "Matadi", "Mbuji-Mayi"]
DEFAULT_CITY = "Lubumbashi"

# Stake ladder in USD, scaled by a drawn multiplier.
STAKE_AMOUNTS = [250, 400, 600, 900, 1200, 2000, 3500, 5000, 12000, 25000, 60000]
STAKE_MULTIPLIERS = [1, 1, 1, 2, 3]

TITLE_KINDS = ["Dossier", "Practical case", "Matter", "Scenario", "Proceeding"]
TITLE_NUMERALS = ["I", "II", "III", "IV", "V", "A", "B", "C"]

GIVEN_NAMES = [
    "Jean-Pierre", "Aline", "Patrick", "Esther", "Didier", "Grace", "Serge",
    "Mireille", "Olivier", "Chantal", "Fiston", "Nadine",
]
SURNAMES = [
    "Kabeya", "Ndaye", "Sefu", "Tshibanda", "Banza", "Lunda", "Mbuyi",
    "Kasongo", "Kalala", "Ilunga", "Mukendi", "Mwamba",
]

COURT_BY_DOMAIN = {
    Domain.PENAL: CourtInfo(court="Peace Court", chamber="Criminal Hearing", hearing_type="Criminal"),
    Domain.MILITARY_PENAL: CourtInfo(
        court="Garrison Military Court", chamber="Criminal Hearing", hearing_type="Military criminal"
    ),
    Domain.LAND: CourtInfo(court="High Court", chamber="Land Chamber", hearing_type="Land"),
    Domain.LABOR: CourtInfo(court="Labor Court", chamber="Conciliation / Judgment", hearing_type="Labor"),
    Domain.FAMILY: CourtInfo(
        court="Juvenile Court / High Court", chamber="Family Chamber", hearing_type="Family"
    ),
    Domain.CONSTITUTIONAL: CourtInfo(
        court="Constitutional Court", chamber="Public Hearing", hearing_type="Constitutional"
    ),
    Domain.COMMERCIAL: CourtInfo(
        court="Commercial Court", chamber="Commercial Chamber", hearing_type="Commercial/OHADA"
    ),
    Domain.ADMINISTRATIVE: CourtInfo(
        court="Council of State / Administrative Court",
        chamber="Administrative Hearing",
        hearing_type="Administrative",
    ),
}
DEFAULT_COURT = CourtInfo(court="Court", chamber="Hearing", hearing_type="General")


def get_court_info(domain) -> CourtInfo:
    return COURT_BY_DOMAIN.get(domain, DEFAULT_COURT)


# ============================================================
# DOMAIN KEYWORDS
# ============================================================

# Checked in order against accent-stripped, lowercased text.
# Anything unmatched falls back to FALLBACK_DOMAIN.
DOMAIN_KEYWORDS = [
    (Domain.MILITARY_PENAL, ("militar", "garrison", "garnison", "insubordination", "desertion")),
    (Domain.LAND, ("land", "foncier", "parcel", "parcelle", "cadastr", "boundary", "bornage", "terrain")),
    (Domain.LABOR, ("labor", "labour", "travail", "dismiss", "licenci", "employ", "salary", "salaire", "wage")),
    (Domain.COMMERCIAL, ("ohada", "commerc", "invoice", "facture", "payment order", "injonction", "company", "rccm")),
    (Domain.CONSTITUTIONAL, ("constitution", "fundamental right", "droits fondamentaux")),
    (Domain.ADMINISTRATIVE, ("admin", "permit", "permis", "licence", "license", "ministry", "municipal", "mairie")),
    (Domain.FAMILY, ("family", "famille", "child", "enfant", "divorce", "alimony", "custody of")),
    (Domain.PENAL, ("penal", "criminal", "detention", "theft", "vol", "prosecut")),
]
FALLBACK_DOMAIN = Domain.PENAL

TEMPLATE_BY_DOMAIN = {
    Domain.PENAL: "TPL_PENAL_DETENTION",
    Domain.LAND: "TPL_LAND_TITLE_CUSTOM",
    Domain.LABOR: "TPL_LABOR_DISMISSAL",
    Domain.COMMERCIAL: "TPL_OHADA_PAYMENT_ORDER",
    Domain.CONSTITUTIONAL: "TPL_CONSTITUTIONAL_FUNDAMENTAL_RIGHTS",
    Domain.ADMINISTRATIVE: "TPL_ADMIN_PERMIT_SANCTION",
    Domain.FAMILY: "TPL_FAMILY_CUSTODY_SUPPORT",
    Domain.MILITARY_PENAL: "TPL_MILITARY_INSUBORDINATION",
}


# ============================================================
# PEDAGOGY
# ============================================================

COMMON_OBJECTIVES = [
    "Identify the disputed questions and qualify them legally",
    "Structure a reasoning (facts, rule, application, conclusion)",
    "Guarantee an adversarial hearing and equality of arms",
    "Handle evidence (admissibility, relevance, lateness)",
    "Run the hearing (incidents, courtroom order, reasoned rulings)",
    "Keep the record: traceability of pieces, entries, calendar",
]

DOMAIN_OBJECTIVES = {
    Domain.PENAL: [
        "Check defence rights and the regularity of investigative acts",
        "Weigh pre-trial detention against alternative measures",
        "Answer nullity pleas and hearing incidents",
    ],
    Domain.MILITARY_PENAL: [
        "Check the court's jurisdiction and the status of the accused",
        "Balance military discipline against defence rights",
        "Handle hierarchical reports and contradictory statements",
    ],
    Domain.LAND: [
        "Verify title versus custom, occupation and the chain of transfers",
        "Order expert reports, boundary surveys and site visits",
        "Reason on evidence and legal certainty",
    ],
    Domain.LABOR: [
        "Qualify the termination and check the dismissal procedure",
        "Compute and justify severance, unpaid wages and damages",
        "Handle conciliation and evidence (contract, payslips)",
    ],
    Domain.COMMERCIAL: [
        "Qualify the claim under OHADA payment-order conditions",
        "Check trade registration, standing and commercial jurisdiction",
        "Reason on interest, costs and enforcement",
    ],
    Domain.CONSTITUTIONAL: [
        "Identify the norm and the constitutional grievance",
        "Apply a necessity and proportionality review",
        "Write a structured, accessible reasoning",
    ],
    Domain.ADMINISTRATIVE: [
        "Review legality (competence, form, procedure, grounds)",
        "Manage time limits, remedies and interim measures",
        "Reason on public interest versus the rights of citizens",
    ],
    Domain.FAMILY: [
        "Protect the best interests of the child",
        "Assess evidence of income, charges and family situation",
        "Reason on custody, support and visiting rights",
    ],
}

COMMON_PITFALLS = [
    "Ruling on an incident before hearing the other party",
    "An unreasoned ruling or a vague one",
    "Ignoring the effect of late pieces on the adversarial principle",
    "Confusing jurisdiction, admissibility and merits defences",
    "Not entering the ruling clearly in the hearing record",
]

AUDIENCE_CHECKLIST = [
    "Did I summarise the incident neutrally?",
    "Did I hear both parties on the incident?",
    "Is my ruling reasoned in two to six sentences?",
    "Did I note the effect on the pieces (admitted or excluded)?",
    "Did I assess the appeal risk (low, medium, high)?",
]


# ============================================================
# GENERIC DECKS (hydration defaults)
# ============================================================

GENERIC_LEGAL_ISSUES = [
    "Jurisdiction and admissibility",
    "Adversarial principle and equality of arms",
    "Evidence: authenticity and lateness",
    "Sufficiency of the reasoning",
    "Investigative measures",
    "Consistency of the operative part",
]

GENERIC_EVENTS_DECK = [
    EventCard(id="E1", title="Late piece produced", impact="Debate on the adversarial principle."),
    EventCard(id="E2", title="Adjournment requested", impact="Preparation or production of evidence."),
    EventCard(id="E3", title="Procedural incident", impact="Admissibility or jurisdiction plea."),
]


# ============================================================
# TEMPLATES
# ============================================================

COMMON_OBJECTIONS = [
    ObjectionSeed(
        by="Defense-Counsel",
        title="Nullity (formal defect / breach of the adversarial principle)",
        statement=(
            "Counsel raises a nullity: a defence right was breached when the act was drawn up. "
            "Counsel asks the court to annul the act and exclude the disputed piece."
        ),
        appeal_risk_penalty=2,
        due_process_bonus=2,
    ),
    ObjectionSeed(
        by="Prosecutor",
        title="Adjournment (witness / expert report / disclosure)",
        statement=(
            "Request to adjourn to hear a witness, obtain an expert report or disclose pieces. "
            "The debate turns on diligence and the balance of the hearing."
        ),
        appeal_risk_penalty=1,
        due_process_bonus=1,
    ),
    ObjectionSeed(
        by="Defense-Counsel",
        title="Joinder / severance of proceedings",
        statement=(
            "Request to join connected proceedings, or to sever them for the proper "
            "administration of justice, delays or complexity."
        ),
        appeal_risk_penalty=1,
        due_process_bonus=1,
    ),
    ObjectionSeed(
        by="Plaintiff-Counsel",
        title="Disclosure of pieces",
        statement=(
            "A party demands disclosure of pieces, or contests a late production. "
            "Debate on admissibility, time limits and the adversarial principle."
        ),
        appeal_risk_penalty=2,
        due_process_bonus=2,
    ),
]


def _penal_template() -> CaseTemplate:
    return CaseTemplate(
        template_id="TPL_PENAL_DETENTION",
        domain=Domain.PENAL,
        base_title="Pre-trial detention, regularity of acts & adversarial hearing",
        levels=ALL_LEVELS,
        parties=[
            PartySlot(key="accused", labels=["Accused", "Defendant"]),
            PartySlot(key="victim", labels=["Victim", "Civil party"]),
            PartySlot(key="prosecution", labels=["Public Prosecutor"], names=["Public Ministry"]),
            PartySlot(key="defense", labels=["Defence counsel", "Lawyer for the accused"]),
        ],
        facts=[
            "The accused contests the regularity of the arrest and claims the detention time limits were exceeded. "
            "The defence seeks release or provisional liberty.",
            "A key statement in the interview record is contested (signature, time entry, presence of counsel). "
            "The defence raises a nullity and asks for the piece to be excluded.",
            "Digital evidence (a messaging screenshot) is produced late. Debate on authenticity, chain of custody "
            "and the adversarial principle.",
            "The prosecution asks for an adjournment to complete the investigation (witness, technical report). "
            "Debate on diligence, time limits and the balance of rights.",
        ],
        legal_issues=[
            "Review of pre-trial detention",
            "Procedural nullities (act, form, grievance)",
            "Defence rights and the adversarial principle",
            "Admissibility of late pieces",
            "Reasoning and consistency of the operative part",
            "Handling of digital evidence",
        ],
        pieces=[
            PieceSeed(type="Record", titles=["Arrest record", "Interview record", "Confrontation record"],
                      contents=["Time entry disputed", "Counsel not mentioned", "Signatures incomplete"]),
            PieceSeed(type="Warrant", titles=["Prosecution requisition", "Detention order", "Arrest warrant"],
                      contents=["Brief grounds", "Time limits contested", "Legal basis disputed"]),
            PieceSeed(type="Certificate", titles=["Medical certificate", "Attestation", "Nursing report"],
                      contents=["Health condition invoked", "Treatment required", "Fitness for detention disputed"]),
            PieceSeed(type="Digital evidence", titles=["Messaging screenshot", "Audio recording", "Photograph"],
                      contents=["Origin uncertain", "Timestamp disputed", "Authenticity contested"]),
            PieceSeed(type="Report", titles=["Investigation report", "Intelligence note", "Service memo"],
                      contents=["Partial information", "Witness not heard", "Internal contradictions"]),
            PieceSeed(type="Statement", titles=["Witness statement", "Victim complaint", "Neighbour statement"],
                      contents=["Account differs from record", "Written days later", "Unsigned copy"]),
        ],
        events=[
            EventSeed(title="Late piece", impact="Immediate debate on adversarial hearing and admissibility."),
            EventSeed(title="Witness unavailable", impact="Adjournment requested with compulsory measures."),
            EventSeed(title="Nullity raised", impact="A reasoned interlocutory ruling is expected."),
            EventSeed(title="Release application", impact="Weigh guarantees against risks."),
        ],
        objections=COMMON_OBJECTIONS + [
            ObjectionSeed(
                by="Defense-Counsel",
                title="Provisional release (guarantees)",
                statement="Application for provisional release (fixed address, bail, undertaking to appear).",
                appeal_risk_penalty=1,
                due_process_bonus=2,
            ),
            ObjectionSeed(
                by="Prosecutor",
                title="Admissibility of digital evidence",
                statement=(
                    "The prosecution produces a messaging screenshot. The defence contests its "
                    "authenticity and chain of custody."
                ),
                appeal_risk_penalty=2,
                due_process_bonus=1,
            ),
        ],
    )


def _land_template() -> CaseTemplate:
    return CaseTemplate(
        template_id="TPL_LAND_TITLE_CUSTOM",
        domain=Domain.LAND,
        base_title="Competing land titles, customary rights & site inspection",
        levels=ALL_LEVELS,
        parties=[
            PartySlot(key="plaintiff", labels=["Plaintiff", "Title holder"]),
            PartySlot(key="defendant", labels=["Defendant", "Customary occupant"]),
            PartySlot(key="registry", labels=["Land registry"], names=["Land Titles Office"]),
            PartySlot(key="counsel", labels=["Counsel for the plaintiff", "Counsel for the defendant"]),
        ],
        facts=[
            "Two buyers hold deeds for the same plot, each issued by a different seller.",
            "A registered title holder seeks eviction of a family occupying the plot under customary rights.",
            "A boundary survey is contested: the neighbour claims two metres of the parcel.",
            "The registry issued a certificate later withdrawn for irregular procedure.",
        ],
        legal_issues=[
            "Priority between competing titles",
            "Customary rights versus registered title",
            "Validity of the chain of transfers",
            "Need for a site inspection or expert survey",
            "Good faith of the occupant",
            "Enforceability of an eviction order",
        ],
        pieces=[
            PieceSeed(type="Title", titles=["Registration certificate", "Lease contract", "Concession deed"],
                      contents=["Stamp illegible", "Dates inconsistent", "Issued after the dispute began"]),
            PieceSeed(type="Deed", titles=["Sale deed", "Handwritten sale note", "Donation deed"],
                      contents=["Witnesses missing", "Seller's capacity disputed", "Price not stated"]),
            PieceSeed(type="Survey", titles=["Boundary survey", "Cadastral plan", "Surveyor's report"],
                      contents=["Markers moved", "Coordinates approximate", "Survey done without notice"]),
            PieceSeed(type="Attestation", titles=["Chief's attestation", "Neighbour attestation", "Occupancy note"],
                      contents=["Customary allocation invoked", "Occupation for twenty years", "No date"]),
            PieceSeed(type="Photograph", titles=["Site photographs", "Aerial image", "Construction photos"],
                      contents=["Building works visible", "Date unknown", "Fence position disputed"]),
            PieceSeed(type="Correspondence", titles=["Registry letter", "Formal notice", "Withdrawal notice"],
                      contents=["Sent to an old address", "Receipt contested", "Unsigned"]),
        ],
        events=[
            EventSeed(title="Site inspection requested", impact="Court may order a visit before ruling."),
            EventSeed(title="Third claimant appears", impact="Intervention and joinder debated."),
            EventSeed(title="Registry official absent", impact="Adjournment or written answer."),
            EventSeed(title="Construction resumed", impact="Interim measure sought."),
        ],
        objections=COMMON_OBJECTIONS + [
            ObjectionSeed(
                by="Plaintiff-Counsel",
                title="Site inspection and expert survey",
                statement="Counsel asks the court to order a site inspection before any ruling on the merits.",
                appeal_risk_penalty=1,
                due_process_bonus=2,
            ),
            ObjectionSeed(
                by="Defense-Counsel",
                title="Inadmissibility for lack of standing",
                statement="The defendant argues the plaintiff's seller never held rights to the parcel.",
                appeal_risk_penalty=2,
                due_process_bonus=1,
            ),
        ],
    )


def _labor_template() -> CaseTemplate:
    return CaseTemplate(
        template_id="TPL_LABOR_DISMISSAL",
        domain=Domain.LABOR,
        base_title="Dismissal procedure, severance & burden of proof",
        levels=ALL_LEVELS,
        parties=[
            PartySlot(key="employee", labels=["Employee", "Former employee"]),
            PartySlot(key="employer", labels=["Employer"], names=["Kivu Logistics SARL", "Katanga Mining Services",
                                                                  "Congo Retail SA"]),
            PartySlot(key="inspector", labels=["Labour inspector"], names=["Labour Inspectorate"]),
            PartySlot(key="counsel", labels=["Counsel for the employee", "Counsel for the employer"]),
        ],
        facts=[
            "The employee was dismissed without a prior hearing after fifteen years of service.",
            "The employer alleges job abandonment; the employee produces a late medical certificate.",
            "Unpaid overtime and bonuses are claimed; the employer disputes the time sheets.",
            "The dismissal followed a union meeting; the employee alleges discrimination.",
        ],
        legal_issues=[
            "Regularity of the dismissal procedure",
            "Valid and serious reason for dismissal",
            "Calculation of severance and notice",
            "Burden of proof on working hours",
            "Prior conciliation before the inspectorate",
            "Damages for abusive dismissal",
        ],
        pieces=[
            PieceSeed(type="Contract", titles=["Employment contract", "Contract amendment", "Job description"],
                      contents=["Unsigned amendment", "Probation clause unclear", "Duties differ from practice"]),
            PieceSeed(type="Letter", titles=["Dismissal letter", "Warning letter", "Summons to hearing"],
                      contents=["No grounds stated", "Delivered by hand without receipt", "Dated after dismissal"]),
            PieceSeed(type="Payslip", titles=["Payslips", "Bank statements", "Bonus schedule"],
                      contents=["Overtime missing", "Deductions unexplained", "Two months unpaid"]),
            PieceSeed(type="Certificate", titles=["Medical certificate", "Sick leave note", "Hospital discharge"],
                      contents=["Submitted late", "Doctor unidentified", "Dates overlap the absence"]),
            PieceSeed(type="Record", titles=["Conciliation record", "Inspector's report", "Attendance log"],
                      contents=["Conciliation failed", "Employer absent", "Entries corrected by hand"]),
            PieceSeed(type="Statement", titles=["Colleague statement", "Supervisor report", "Union letter"],
                      contents=["Contradicts the employer", "Written after the dispute", "Unsigned copy"]),
        ],
        events=[
            EventSeed(title="Late medical certificate", impact="Debate on its admission and the absence."),
            EventSeed(title="Conciliation record missing", impact="Admissibility of the claim questioned."),
            EventSeed(title="Settlement offer", impact="Court may suspend for negotiation."),
            EventSeed(title="Witness intimidated", impact="Protective measures requested."),
        ],
        objections=COMMON_OBJECTIONS + [
            ObjectionSeed(
                by="Defense-Counsel",
                title="No prior conciliation",
                statement="The employer argues the claim is inadmissible for want of conciliation before the inspectorate.",
                appeal_risk_penalty=2,
                due_process_bonus=1,
            ),
            ObjectionSeed(
                by="Plaintiff-Counsel",
                title="Production of time records",
                statement="Counsel asks the court to order the employer to produce the attendance registers.",
                appeal_risk_penalty=1,
                due_process_bonus=2,
            ),
        ],
    )


def _ohada_template() -> CaseTemplate:
    return CaseTemplate(
        template_id="TPL_OHADA_PAYMENT_ORDER",
        domain=Domain.COMMERCIAL,
        base_title="OHADA payment order, opposition & proof of the claim",
        levels=ALL_LEVELS,
        parties=[
            PartySlot(key="creditor", labels=["Creditor", "Supplier"], names=["Lualaba Supplies SARL",
                                                                           "Great Lakes Trading SA"]),
            PartySlot(key="debtor", labels=["Debtor", "Customer"], names=["Matadi Construction SARL",
                                                                       "Bukavu Agro SA"]),
            PartySlot(key="bailiff", labels=["Bailiff"]),
            PartySlot(key="counsel", labels=["Counsel for the creditor", "Counsel for the debtor"]),
        ],
        facts=[
            "The supplier obtained a payment order on unpaid invoices; the customer disputes delivery.",
            "The debtor filed an opposition allegedly outside the fifteen-day limit.",
            "The debtor claims set-off for defective goods and asks for an expert report.",
            "The claim rests on a purchase order signed by an employee without authority.",
        ],
        legal_issues=[
            "Certain, liquid and payable claim",
            "Time limit for opposition",
            "Proof of delivery",
            "Set-off and counterclaims",
            "Authority of the signatory",
            "Interest, costs and enforcement",
        ],
        pieces=[
            PieceSeed(type="Invoice", titles=["Invoice", "Pro forma invoice", "Credit note"],
                      contents=["No delivery reference", "Amount differs from order", "Unstamped"]),
            PieceSeed(type="Order", titles=["Purchase order", "Framework agreement", "Quotation"],
                      contents=["Signed by an intern", "Prices updated by hand", "Expired"]),
            PieceSeed(type="Delivery note", titles=["Delivery note", "Waybill", "Warehouse receipt"],
                      contents=["Receipt contested", "Quantities missing", "Signature illegible"]),
            PieceSeed(type="Writ", titles=["Payment order", "Service of the order", "Opposition writ"],
                      contents=["Service date disputed", "Served at the wrong office", "Filed late"]),
            PieceSeed(type="Registry extract", titles=["Trade register extract", "Articles of association",
                                                       "Board minutes"],
                      contents=["Manager not listed", "Outdated extract", "Powers limited"]),
            PieceSeed(type="Correspondence", titles=["Reminder letters", "E-mail exchange", "Quality complaint"],
                      contents=["Complaint about defects", "Promise to pay", "Sent to a generic address"]),
        ],
        events=[
            EventSeed(title="Opposition filed late", impact="Admissibility of the opposition debated."),
            EventSeed(title="Expert report requested", impact="Quality of goods assessed."),
            EventSeed(title="Partial payment", impact="Claim amount recalculated."),
            EventSeed(title="Debtor in receivership", impact="Stay of individual proceedings debated."),
        ],
        objections=COMMON_OBJECTIONS + [
            ObjectionSeed(
                by="Plaintiff-Counsel",
                title="Opposition out of time",
                statement="The creditor argues the opposition was filed after the legal time limit.",
                appeal_risk_penalty=2,
                due_process_bonus=1,
            ),
            ObjectionSeed(
                by="Defense-Counsel",
                title="Expert report on the goods",
                statement="The debtor asks for an expert report on the quality of the delivered goods.",
                appeal_risk_penalty=1,
                due_process_bonus=2,
            ),
        ],
    )


def _constitutional_template() -> CaseTemplate:
    return CaseTemplate(
        template_id="TPL_CONSTITUTIONAL_FUNDAMENTAL_RIGHTS",
        domain=Domain.CONSTITUTIONAL,
        base_title="Fundamental rights, legal basis & proportionality",
        levels=ALL_LEVELS,
        parties=[
            PartySlot(key="applicant", labels=["Applicant", "Citizens' association"]),
            PartySlot(key="authority", labels=["Respondent authority"], names=["Provincial Government",
                                                                            "Ministry of the Interior"]),
            PartySlot(key="prosecution", labels=["Prosecutor General"], names=["Public Ministry"]),
            PartySlot(key="counsel", labels=["Counsel for the applicant", "State counsel"]),
        ],
        facts=[
            "A provincial decree bans all public meetings for three months without stated grounds.",
            "A journalist was detained for a publication; the applicant challenges the law applied.",
            "An urgent interim measure is sought against the closure of a radio station.",
            "A statute restricts access to courts for a category of civil servants.",
        ],
        legal_issues=[
            "Legal basis of the restriction",
            "Necessity and proportionality",
            "Admissibility of the constitutional application",
            "Urgency and interim measures",
            "Effect of a declaration of unconstitutionality",
            "Equality before the law",
        ],
        pieces=[
            PieceSeed(type="Decree", titles=["Provincial decree", "Ministerial order", "Circular"],
                      contents=["No grounds stated", "Published late", "Signed by an interim official"]),
            PieceSeed(type="Petition", titles=["Application", "Supplementary brief", "Intervention brief"],
                      contents=["Filed by an unregistered body", "New grounds raised", "Signatures incomplete"]),
            PieceSeed(type="Report", titles=["Police report", "Human rights report", "Security assessment"],
                      contents=["Threat not specified", "Sources anonymous", "Dated after the decree"]),
            PieceSeed(type="Media", titles=["Press article", "Broadcast transcript", "Video recording"],
                      contents=["Edited excerpt", "Translation disputed", "Origin unclear"]),
            PieceSeed(type="Attestation", titles=["Witness attestation", "Association statutes", "Meeting notice"],
                      contents=["Organiser identity disputed", "Undated", "Copy only"]),
            PieceSeed(type="Correspondence", titles=["Prior notification", "Authority reply", "Formal notice"],
                      contents=["Receipt contested", "Reply outside time limit", "No reply"]),
        ],
        events=[
            EventSeed(title="Urgency invoked", impact="Interim measure debated before the merits."),
            EventSeed(title="Amicus brief filed", impact="Admissibility of third-party observations."),
            EventSeed(title="Decree amended", impact="Debate on whether the application is moot."),
            EventSeed(title="Government absent", impact="Default or adjournment."),
        ],
        objections=COMMON_OBJECTIONS + [
            ObjectionSeed(
                by="Defense-Counsel",
                title="Inadmissibility of the application",
                statement="State counsel argues the applicant lacks a direct and personal interest.",
                appeal_risk_penalty=2,
                due_process_bonus=1,
            ),
            ObjectionSeed(
                by="Plaintiff-Counsel",
                title="Interim suspension",
                statement="The applicant asks for the decree to be suspended pending the ruling.",
                appeal_risk_penalty=1,
                due_process_bonus=2,
            ),
        ],
    )


def _admin_template() -> CaseTemplate:
    return CaseTemplate(
        template_id="TPL_ADMIN_PERMIT_SANCTION",
        domain=Domain.ADMINISTRATIVE,
        base_title="Permit withdrawal, right to be heard & legality review",
        levels=ALL_LEVELS,
        parties=[
            PartySlot(key="applicant", labels=["Applicant", "Permit holder"]),
            PartySlot(key="administration", labels=["Administration"], names=["City Hall", "Ministry of Trade",
                                                                             "Provincial Environment Office"]),
            PartySlot(key="prosecution", labels=["Public Ministry"], names=["Public Ministry"]),
            PartySlot(key="counsel", labels=["Counsel for the applicant", "Counsel for the administration"]),
        ],
        facts=[
            "A trading permit was withdrawn without a prior hearing of the holder.",
            "A disciplinary sanction was imposed on a civil servant by an incompetent authority.",
            "A building permit was refused on grounds not provided by the regulations.",
            "The applicant challenges a sanction after the time limit for an administrative appeal.",
        ],
        legal_issues=[
            "Competence of the author of the act",
            "Right to be heard before a sanction",
            "Statement of reasons",
            "Time limits for remedies",
            "Interim suspension of the act",
            "Misuse of power",
        ],
        pieces=[
            PieceSeed(type="Decision", titles=["Withdrawal decision", "Sanction order", "Refusal letter"],
                      contents=["Grounds missing", "Signed by a delegate", "No legal reference"]),
            PieceSeed(type="Permit", titles=["Trading permit", "Building permit", "Operating licence"],
                      contents=["Renewed last year", "Conditions disputed", "Copy only"]),
            PieceSeed(type="Report", titles=["Inspection report", "Audit report", "Complaint file"],
                      contents=["Inspection without notice", "Author unidentified", "Findings general"]),
            PieceSeed(type="Appeal", titles=["Administrative appeal", "Hierarchical appeal", "Request for reasons"],
                      contents=["Receipt missing", "Filed late", "No answer received"]),
            PieceSeed(type="Notice", titles=["Summons to hearing", "Formal notice", "Publication notice"],
                      contents=["Sent after the decision", "Wrong address", "Undated"]),
            PieceSeed(type="Attestation", titles=["Tax clearance", "Neighbour petition", "Chamber of commerce letter"],
                      contents=["Supports the applicant", "Signatures unverified", "Outdated"]),
        ],
        events=[
            EventSeed(title="Interim suspension sought", impact="Urgency and serious doubt debated."),
            EventSeed(title="Administration withdraws the act", impact="Is the case now moot?"),
            EventSeed(title="New grounds substituted", impact="Debate on substitution of grounds."),
            EventSeed(title="File not transmitted", impact="Order to produce the administrative file."),
        ],
        objections=COMMON_OBJECTIONS + [
            ObjectionSeed(
                by="Defense-Counsel",
                title="Appeal out of time",
                statement="The administration argues the application was filed after the time limit.",
                appeal_risk_penalty=2,
                due_process_bonus=1,
            ),
            ObjectionSeed(
                by="Plaintiff-Counsel",
                title="Production of the administrative file",
                statement="Counsel asks the court to order the administration to produce the full file.",
                appeal_risk_penalty=1,
                due_process_bonus=2,
            ),
        ],
    )


def _family_template() -> CaseTemplate:
    return CaseTemplate(
        template_id="TPL_FAMILY_CUSTODY_SUPPORT",
        domain=Domain.FAMILY,
        base_title="Child custody, maintenance & best interests of the child",
        levels=ALL_LEVELS,
        parties=[
            PartySlot(key="mother", labels=["Mother", "Applicant"]),
            PartySlot(key="father", labels=["Father", "Respondent"]),
            PartySlot(key="prosecution", labels=["Public Ministry"], names=["Public Ministry"]),
            PartySlot(key="counsel", labels=["Counsel for the mother", "Counsel for the father"]),
        ],
        facts=[
            "After separation, both parents seek custody of two children aged six and nine.",
            "The father contests the maintenance amount, claiming his income has dropped.",
            "The mother asks to relocate with the children to another province.",
            "A social inquiry report is disputed by the father as one-sided.",
        ],
        legal_issues=[
            "Best interests of the child",
            "Custody and visiting rights",
            "Assessment of income and charges",
            "Social inquiry and hearing of the child",
            "Interim measures",
            "Enforcement of maintenance",
        ],
        pieces=[
            PieceSeed(type="Civil status", titles=["Birth certificates", "Marriage certificate", "Family book"],
                      contents=["Copy only", "Name misspelled", "Issued late"]),
            PieceSeed(type="Financial", titles=["Payslips", "Bank statement", "Tax return"],
                      contents=["Income understated", "Months missing", "Cash income omitted"]),
            PieceSeed(type="Report", titles=["Social inquiry report", "School report", "Psychologist note"],
                      contents=["One parent not interviewed", "Positive for both", "Written at one party's request"]),
            PieceSeed(type="Medical", titles=["Medical certificate", "Vaccination card", "Hospital record"],
                      contents=["Child's condition requires care", "Undated", "Doctor unidentified"]),
            PieceSeed(type="Statement", titles=["Grandparent statement", "Neighbour statement", "Teacher letter"],
                      contents=["Partial account", "Contradicts the other party", "Unsigned"]),
            PieceSeed(type="Correspondence", titles=["Text messages", "Lease contract", "Job offer letter"],
                      contents=["Excerpted", "Relocation planned", "Authenticity disputed"]),
        ],
        events=[
            EventSeed(title="Child asks to be heard", impact="Hearing arrangements debated."),
            EventSeed(title="New social inquiry requested", impact="Adjournment and interim custody."),
            EventSeed(title="Maintenance arrears", impact="Enforcement measures sought."),
            EventSeed(title="Relocation announced", impact="Urgent interim measure requested."),
        ],
        objections=COMMON_OBJECTIONS + [
            ObjectionSeed(
                by="Defense-Counsel",
                title="Counter social inquiry",
                statement="The father asks for a new social inquiry by a different officer.",
                appeal_risk_penalty=1,
                due_process_bonus=2,
            ),
            ObjectionSeed(
                by="Plaintiff-Counsel",
                title="Interim maintenance",
                statement="The mother asks for interim maintenance pending the ruling.",
                appeal_risk_penalty=1,
                due_process_bonus=1,
            ),
        ],
    )


def _military_template() -> CaseTemplate:
    return CaseTemplate(
        template_id="TPL_MILITARY_INSUBORDINATION",
        domain=Domain.MILITARY_PENAL,
        base_title="Insubordination, military jurisdiction & defence rights",
        levels=[Level.INTERMEDIATE, Level.ADVANCED],
        parties=[
            PartySlot(key="accused", labels=["Accused soldier", "Accused corporal", "Accused sergeant"]),
            PartySlot(key="command", labels=["Commanding officer"], names=["Garrison Command"]),
            PartySlot(key="prosecution", labels=["Military prosecutor"], names=["Military Public Ministry"]),
            PartySlot(key="defense", labels=["Defence counsel", "Officer-defender"]),
        ],
        facts=[
            "A soldier refused an order to move to a new post, citing a family emergency.",
            "A corporal is accused of insulting a superior during an inspection.",
            "A sergeant left the barracks for five days; the defence contests the desertion charge.",
            "The accused is a civilian employee of the army; jurisdiction is contested.",
        ],
        legal_issues=[
            "Jurisdiction of the military court",
            "Legality of the order refused",
            "Defence rights before a military court",
            "Value of hierarchical reports",
            "Pre-trial detention in barracks",
            "Proportionality of the sentence",
        ],
        pieces=[
            PieceSeed(type="Order", titles=["Written order", "Transfer order", "Duty roster"],
                      contents=["Signed after the facts", "Not served", "Unit number wrong"]),
            PieceSeed(type="Report", titles=["Hierarchical report", "Incident report", "Inspection report"],
                      contents=["Written by the complainant", "Witnesses not named", "Contradictory times"]),
            PieceSeed(type="Record", titles=["Interview record", "Detention register", "Roll-call sheet"],
                      contents=["Counsel absent", "Entries corrected", "Pages missing"]),
            PieceSeed(type="Statement", titles=["Comrade statement", "Officer statement", "Family letter"],
                      contents=["Supports the accused", "Written under pressure", "Unsigned"]),
            PieceSeed(type="Certificate", titles=["Medical certificate", "Leave authorisation", "Service record"],
                      contents=["Submitted late", "Issuer unknown", "Good conduct noted"]),
            PieceSeed(type="Status", titles=["Enlistment contract", "Civilian employment contract", "Rank decree"],
                      contents=["Status ambiguous", "Expired contract", "Copy only"]),
        ],
        events=[
            EventSeed(title="Jurisdiction contested", impact="Plea to be decided before the merits."),
            EventSeed(title="Commanding officer absent", impact="Adjournment or written report."),
            EventSeed(title="Release requested", impact="Guarantees and discipline weighed."),
            EventSeed(title="New witness from the unit", impact="Admissibility of late testimony."),
        ],
        objections=COMMON_OBJECTIONS + [
            ObjectionSeed(
                by="Defense-Counsel",
                title="Lack of military jurisdiction",
                statement="The defence argues the accused is a civilian and outside military jurisdiction.",
                appeal_risk_penalty=2,
                due_process_bonus=2,
            ),
            ObjectionSeed(
                by="Prosecutor",
                title="Hearing of the commanding officer",
                statement="The military prosecutor asks to hear the commanding officer as a witness.",
                appeal_risk_penalty=1,
                due_process_bonus=1,
            ),
        ],
    )


CASE_TEMPLATES = [
    _penal_template(),
    _land_template(),
    _labor_template(),
    _ohada_template(),
    _constitutional_template(),
    _admin_template(),
    _family_template(),
    _military_template(),
]


def get_case_templates() -> list[CaseTemplate]:
    return list(CASE_TEMPLATES)


def get_template(template_id: str) -> CaseTemplate:
    """Look a template up by id; unknown ids resolve to the first template."""
    for template in CASE_TEMPLATES:
        if template.template_id == template_id:
            return template
    return CASE_TEMPLATES[0]


# ============================================================
# TRIAL TIMELINE
# ============================================================

TRIAL_STAGES = [
    TrialStageTemplate(
        stage_id="INTRO",
        title="Introductory hearing",
        objective="Call the case, identify the parties, check summonses and appearances, keep order in court.",
        min_turns=32,
        min_objections=4,
    ),
    TrialStageTemplate(
        stage_id="INCIDENTS",
        title="Hearing on incidents / objections",
        objective=(
            "Rule on objections (jurisdiction, nullity, inadmissibility), continuance requests "
            "and disclosure of pieces."
        ),
        min_turns=42,
        min_objections=8,
    ),
    TrialStageTemplate(
        stage_id="MERITS",
        title="Hearing on the merits (evidence & debate)",
        objective=(
            "Take the evidence, hear the parties and witnesses, confront them, discuss the pieces "
            "and put the bench's questions."
        ),
        min_turns=60,
        min_objections=10,
    ),
    TrialStageTemplate(
        stage_id="CASE_MANAGEMENT",
        title="Case management (calendar & disclosure)",
        objective=(
            "Setting, continuances, disclosure of pieces, written submissions, investigative measures "
            "and the procedural calendar."
        ),
        min_turns=34,
        min_objections=6,
    ),
    TrialStageTemplate(
        stage_id="PLEADINGS",
        title="Pleadings hearing (merits & prosecution submissions)",
        objective="Structured pleadings, prosecution submissions, final questions from the bench, close of debates.",
        min_turns=55,
        min_objections=8,
    ),
    TrialStageTemplate(
        stage_id="DELIBERATION",
        title="Deliberation (internal note)",
        objective="Summarize facts and legal questions, assess the evidence, plan the reasoning and appeal risks.",
        min_turns=26,
        min_objections=2,
        include_incidents=False,
    ),
    TrialStageTemplate(
        stage_id="JUDGMENT",
        title="Delivery of the judgment",
        objective="Read the essential reasons, the operative part, remedies and enforcement measures if any.",
        min_turns=28,
        min_objections=2,
        include_incidents=False,
    ),
]

# Default procedural calendar; "{court}" and "{city}" are filled from the case.
DEFAULT_CALENDAR = [
    CalendarSeed(type="SETTING", day=0, label="Setting of the case", detail="Setting before the {court} ({city})."),
    CalendarSeed(
        type="CASE_MANAGEMENT", day=7, label="Case management",
        detail="Disclosure of pieces and timetable for written submissions.",
    ),
    CalendarSeed(type="HEARING", day=14, label="Introductory hearing", stage_id="INTRO"),
    CalendarSeed(type="HEARING", day=21, label="Hearing on incidents", stage_id="INCIDENTS"),
    CalendarSeed(type="HEARING", day=35, label="Hearing on the merits", stage_id="MERITS"),
    CalendarSeed(type="HEARING", day=49, label="Pleadings hearing", stage_id="PLEADINGS"),
    CalendarSeed(type="DELIBERATION", day=56, label="Case reserved for deliberation", stage_id="DELIBERATION"),
    CalendarSeed(type="JUDGMENT", day=70, label="Delivery of the judgment", stage_id="JUDGMENT"),
]

# Calendar event types that postpone the case; each one adds to the appeal risk.
CONTINUANCE_EVENT_TYPES = ("CONTINUANCE", "RENVOI")

AUTO_INCIDENT_RULES = [
    IncidentRule(
        type="nullity", label="Nullity for defective summons or service",
        detail="Raise a formal defect or the lack of proof of regular summons.",
        stages=["INTRO"], requires_missing_summons=True,
    ),
    IncidentRule(
        type="continuance", label="Continuance to prepare",
        detail="Request a continuance to review the pieces and prepare.",
        stages=["INTRO"],
    ),
    IncidentRule(
        type="incompetence", label="Objection of lack of jurisdiction",
        detail="Check subject-matter and territorial jurisdiction; raise it if needed.",
        stages=["INCIDENTS"],
    ),
    IncidentRule(
        type="inadmissibility", label="Objection of inadmissibility",
        detail="Standing, interest, time limits, lack of authority.",
        stages=["INCIDENTS"],
    ),
    IncidentRule(
        type="communication", label="Disclosure of late pieces",
        detail="Request full adversarial disclosure (rights of the defence).",
        stages=["INCIDENTS"], requires_late_piece=True,
    ),
    IncidentRule(
        type="joinder", label="Joinder / severance",
        detail="Request joinder of connected matters; severance for delay or complexity.",
        stages=["INCIDENTS"],
    ),
    IncidentRule(
        type="investigative_measure", label="Investigative measure",
        detail="Request a hearing, a site visit, an expert report or production of pieces.",
        stages=["MERITS", "PLEADINGS"],
    ),
    IncidentRule(
        type="provisional_release", label="Provisional release / judicial control",
        detail="Raise a provisional measure in view of the file and the guarantees offered.",
        stages=["MERITS", "PLEADINGS"], domains=[Domain.PENAL, Domain.MILITARY_PENAL],
    ),
    IncidentRule(
        type="site_visit", label="Site visit",
        detail="Propose a site visit or a cadastral expert report.",
        domains=[Domain.LAND],
    ),
    IncidentRule(
        type="conciliation", label="Conciliation / prior attempt",
        detail="Check the prior conciliation before the labor inspectorate where applicable.",
        domains=[Domain.LABOR],
    ),
]
AUTO_INCIDENT_LIMIT = 6


def get_trial_stage_templates() -> list[TrialStageTemplate]:
    return list(TRIAL_STAGES)
