"""Exam syllabi and echocardiography view catalogues."""
from qbank.models.descriptions import ExamType

# exam -> section heading -> section code -> subtopic
EXAM_TOPICS: dict[str, dict[str, dict[str, str]]] = {
    "PTEeXAM": {
        "1. Basic TEE": {
            "1.1": "TEE Probe Insertion and Safety",
            "1.2": "Basic TEE Views and Anatomy",
            "1.3": "Standard TEE Examination",
            "1.4": "TEE Equipment and Technology",
        },
        "2. Cardiac Anatomy and Physiology": {
            "2.1": "Chamber Assessment",
            "2.2": "Valvular Anatomy",
            "2.3": "Great Vessel Assessment",
            "2.4": "Congenital Heart Disease",
        },
        "3. Valvular Disease": {
            "3.1": "Mitral Valve Disease",
            "3.2": "Aortic Valve Disease",
            "3.3": "Tricuspid Valve Disease",
            "3.4": "Pulmonary Valve Disease",
            "3.5": "Prosthetic Valves",
        },
        "4. Hemodynamic Assessment": {
            "4.1": "Doppler Principles",
            "4.2": "Pressure Gradients",
            "4.3": "Cardiac Output Assessment",
            "4.4": "Diastolic Function",
        },
        "5. TEE in Cardiac Surgery": {
            "5.1": "Intraoperative TEE",
            "5.2": "Post-surgical Assessment",
            "5.3": "Surgical Planning",
        },
        "6. Advanced TEE Applications": {
            "6.1": "3D TEE",
            "6.2": "Strain Imaging",
            "6.3": "Contrast Enhancement",
            "6.4": "Interventional Guidance",
        },
    },
    "EACTVI": {
        "1. Basic Echocardiography": {
            "1.1": "Ultrasound Physics",
            "1.2": "Image Optimization",
            "1.3": "Standard Views",
            "1.4": "Doppler Techniques",
        },
        "2. Left Heart Assessment": {
            "2.1": "LV Function and Geometry",
            "2.2": "LA Assessment",
            "2.3": "Mitral Valve Evaluation",
            "2.4": "Aortic Valve Assessment",
        },
        "3. Right Heart Assessment": {
            "3.1": "RV Function Assessment",
            "3.2": "RA Evaluation",
            "3.3": "Tricuspid Valve Assessment",
            "3.4": "Pulmonary Assessment",
        },
        "4. Hemodynamics and Flow": {
            "4.1": "Pressure Measurements",
            "4.2": "Flow Quantification",
            "4.3": "Shunt Assessment",
            "4.4": "Valve Stenosis/Regurgitation",
        },
        "5. Advanced Techniques": {
            "5.1": "Tissue Doppler",
            "5.2": "Strain Echocardiography",
            "5.3": "3D Echocardiography",
            "5.4": "Contrast Echocardiography",
        },
        "6. Clinical Applications": {
            "6.1": "Heart Failure Assessment",
            "6.2": "Ischemic Heart Disease",
            "6.3": "Cardioembolic Source",
            "6.4": "Critical Care Echocardiography",
        },
    },
}

ECHO_VIEWS: dict[ExamType, dict[str, list[str]]] = {
    ExamType.TTE: {
        "parasternal_views": [
            "Parasternal Long Axis (PLAX)",
            "Parasternal Short Axis - Aortic Valve Level",
            "Parasternal Short Axis - Mitral Valve Level",
            "Parasternal Short Axis - Papillary Muscle Level",
            "Parasternal Short Axis - Apical Level",
            "Right Ventricular Inflow",
            "Right Ventricular Outflow",
        ],
        "apical_views": [
            "Apical 4-Chamber",
            "Apical 2-Chamber",
            "Apical 3-Chamber (Long Axis)",
            "Apical 5-Chamber",
        ],
        "subcostal_views": [
            "Subcostal 4-Chamber",
            "Subcostal Short Axis",
            "Subcostal IVC",
            "Subcostal Aorta",
        ],
        "suprasternal_views": [
            "Suprasternal Long Axis",
            "Suprasternal Short Axis",
        ],
    },
    ExamType.TEE: {
        "upper_esophageal_views": [
            "UE Aortic Arch Long Axis",
            "UE Aortic Arch Short Axis",
        ],
        "mid_esophageal_views": [
            "ME 4-Chamber",
            "ME 2-Chamber",
            "ME Long Axis",
            "ME Mitral Commissural",
            "ME Aortic Valve Short Axis",
            "ME Aortic Valve Long Axis",
            "ME Right Ventricular Inflow-Outflow",
            "ME Bicaval",
            "ME Left Atrial Appendage",
            "ME Ascending Aorta Short Axis",
            "ME Ascending Aorta Long Axis",
        ],
        "transgastric_views": [
            "TG Mid Short Axis",
            "TG 2-Chamber",
            "TG Long Axis",
            "TG Right Ventricular Inflow",
            "Deep TG Long Axis",
        ],
        "descending_aorta_views": [
            "Descending Aorta Short Axis",
            "Descending Aorta Long Axis",
        ],
    },
}


def views_for_exam_type(exam_type: ExamType) -> list[dict[str, str]]:
    """Flatten the view catalogue of an exam type into name/category pairs."""
    return [
        {"name": name, "category": category}
        for category, names in ECHO_VIEWS[exam_type].items()
        for name in names
    ]


def find_subtopic(exam_name: str, section: str) -> str | None:
    """Look up the subtopic name for an exam section code."""
    for subtopics in EXAM_TOPICS.get(exam_name, {}).values():
        if section in subtopics:
            return subtopics[section]
    return None
