from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence


@dataclass(frozen=True)
class Topic:
    name: str
    guidance: str


PERSONAL_INTERESTS: tuple[str, ...] = (
    "development economics",
    "education policy",
    "diplomacy and foreign service",
    "leadership psychology",
    "Delhi governance",
    "dystopian literature",
    "cue sports and pool",
    "social entrepreneurship",
    "debating and Model UN",
    "ethics and philosophy",
)


INTERVIEW_TOPICS: tuple[Topic, ...] = (
    Topic(
        name="IFS Aspiration & Foreign Policy",
        guidance="""Application-based questions:
- Why the foreign service over the administrative service? Which aspect of diplomacy attracts the candidate?
- How does an Economics background help in the foreign service?
- What makes a good diplomat?

Current affairs questions:
- "Multi-alignment" foreign policy: what does strategic autonomy mean today?
- Managing relationships with the US, Russia and China at the same time.
- Role in G20 and BRICS: advancing Global South interests.
- UN Security Council reform: is a permanent seat realistic?
- Enhancing soft power abroad as a foreign service officer.

Build follow-ups on the answers. Probe depth, not memorization.""",
    ),
    Topic(
        name="International Relations & Diplomacy",
        guidance="""Current affairs questions:
- Russia-Ukraine war: is there diplomatic space for mediation?
- Israel-Palestine conflict: should a stronger stand be taken?
- Border tensions with China: which confidence-building measures are needed?
- Indo-Pacific strategy and the Quad: implications for maritime security.
- Political change in the neighbourhood (Bangladesh, Sri Lanka, Maldives): priorities?
- Afghanistan: impact on regional security.
- Act East Policy: challenges and opportunities in Southeast Asia.
- Gulf engagement: energy, trade and diaspora issues.

Mix application context with current events. Ask for a VIEW, not facts.""",
    ),
    Topic(
        name="Economics & Development",
        guidance="""Application-based questions:
- Global debt vulnerabilities: key risks for developing economies?
- The pink tax debate and women's economic participation.
- Raising women's labour force participation.

Current affairs questions:
- Policy priorities for sustaining a 6.5-7% growth rate.
- Making growth inclusive in a high-inequality economy.
- Make in India and Atmanirbhar Bharat: an assessment of progress.
- Fiscal versus monetary trade-offs in managing inflation and growth.
- Labour and skilling reforms and the demographic dividend.
- Environmental sustainability in a fast-growing economy.

Connect the Economics optional to real policy debates.""",
    ),
    Topic(
        name="Governance & Public Administration",
        guidance="""Current affairs questions:
- Simultaneous elections: implications for federalism.
- Civil services reform and bureaucratic neutrality.
- Lateral entry: does it strengthen or weaken the services?
- Performance appraisal: adequate for accountability?
- Political executive versus bureaucratic autonomy.
- Effectiveness of the RTI regime.
- AI in governance: risks and opportunities.
- Freebies versus welfare: fiscal prudence and ethics.

Test administrative thinking, not textbook answers.""",
    ),
    Topic(
        name="Social Issues & Welfare",
        guidance="""Application-based questions:
- A mental health campaign the candidate organised: which policy gaps showed up?
- Should insurance cover mental health mandatorily?
- Social media and youth mental health: regulatory measures.

Current affairs questions:
- Lessons from states declared poverty-free.
- Direct benefit transfers: benefits and concerns.
- Gender equality in political representation and the workforce.
- Malnutrition and anaemia: are current approaches working?
- Digital divide and digital literacy.
- Urban housing, congestion and informal employment.

Connect volunteering experience to policy debates.""",
    ),
    Topic(
        name="Education Policy & Reforms",
        guidance="""Application-based questions:
- Biggest education gaps seen while volunteering with children.
- As a District Magistrate, the first priority for improving education.
- Bridging the quality gap between government and private schools.

Current affairs questions:
- National Education Policy: progress and concerns.
- Learning outcomes despite high enrollment.
- Technology in rural education.
- Skilling policy reforms.

Test practical solutions, not theoretical knowledge.""",
    ),
    Topic(
        name="Environment & Climate Change",
        guidance="""Current affairs questions:
- Climate responsibility versus development needs in negotiations.
- The Green Hydrogen Mission and the energy transition.
- Cities adapting to heatwaves and extreme rainfall.
- Coal policy versus global decarbonization.
- The air quality crisis: critical interventions across levels of government.
- Climate adaptation in agriculture and water policy.
- Carbon markets: a realistic role?
- Development pressure versus environmental clearance as a civil servant.

Balance development and environment. Test nuanced thinking.""",
    ),
    Topic(
        name="Technology, AI & Digital Governance",
        guidance="""Current affairs questions:
- What should an AI regulatory framework prioritise?
- Data protection and privacy in the digital economy.
- Facial recognition and mass surveillance by the state.
- Digital public infrastructure (UPI, Aadhaar): benefits versus rights.
- Preventing an urban-rural AI divide.
- Institutional response to rising cybersecurity incidents.
- Regulating global tech platforms.
- Keeping pace with fast-changing technology as a civil servant.

Probe the balance between technology and governance.""",
    ),
    Topic(
        name="Ethics & Integrity in Civil Service",
        guidance="""Situational questions:
- Political pressure in a high-profile case.
- Social media amplifying administrative decisions.
- Staying non-partisan yet responsive in a 24x7 news cycle.
- Restoring peace in a district with communal tension.
- A senior asks you to overlook a violation.
- Whistleblowing versus departmental loyalty.
- National interest versus universal human rights for a diplomat.

Test character and decision-making under pressure.""",
    ),
    Topic(
        name="Literature, Philosophy & Governance",
        guidance="""Application-based questions:
- What appeals in absurdist literature?
- Dystopian themes and their relevance to modern governance.
- Camus, Kafka, Orwell: lessons for administrators.
- Philosophy informing administrative decisions.

Connect literary interests to ethical governance debates.""",
    ),
    Topic(
        name="Public Speaking & Communication Skills",
        guidance="""Application-based questions:
- Founding a public speaking society: how does it help in administration?
- Communication challenges civil servants face today.
- Using public speaking to handle a crisis as District Magistrate.
- Lessons from Model UN and debate adjudication.

Test how extracurriculars connect to governance.""",
    ),
    Topic(
        name="Delhi & East Delhi Context",
        guidance="""Application-based questions:
- Governance challenges observed growing up in East Delhi.
- Infrastructure priorities for East Delhi.
- How the candidate's background shapes the approach to public service.

Current affairs questions:
- Delhi governance: what needs reform?
- Housing, transport and the informal economy in metros.
- Systemic changes for women's safety in cities.

Make it personal and policy-relevant.""",
    ),
    Topic(
        name="Security, Defence & Strategic Issues",
        guidance="""Current affairs questions:
- Posture in the cyber, space and information domains.
- China-Pakistan ties and US-India ties: security implications.
- Indo-Pacific militarisation and maritime security in the Indian Ocean.
- Energy security and partnerships in West Asia.
- Defence indigenisation and exports as strategic diplomacy.
- Counter-terrorism versus civil liberties.
- Grey-zone challenges: information operations, cross-border radicalisation.

Test strategic thinking relevant to the foreign service.""",
    ),
    Topic(
        name="Multilateralism & Global Governance",
        guidance="""Current affairs questions:
- G20 leadership: aspirations and responsibilities.
- Shaping global rules on AI, data and digital trade.
- Positioning in climate negotiations.
- Reforming the IMF and the World Bank.
- BRICS expansion, IPEF, Quad, SCO: significance.
- The Global South leadership narrative.
- Vaccine diplomacy during Covid.
- Defending trade interests amid rising protectionism.

Test the grasp of multilateral strategy.""",
    ),
)


def get_topic(name: str | None, catalog: Sequence[Topic] = INTERVIEW_TOPICS) -> Topic | None:
    if not name:
        return None
    for topic in catalog:
        if topic.name == name:
            return topic
    return None


def next_uncovered(covered: Iterable[str], catalog: Sequence[Topic] = INTERVIEW_TOPICS) -> Topic | None:
    seen = set(covered or [])
    for topic in catalog:
        if topic.name not in seen:
            return topic
    return None
