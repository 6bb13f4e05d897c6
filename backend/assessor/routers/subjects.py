from fastapi import APIRouter

router = APIRouter(prefix="/subjects", tags=["subjects"])

SUBJECTS = [
	"Cryptocurrency",
	"Blockchain",
	"Economy",
	"Biology",
	"Physics",
	"History",
	"Literature",
	"Computer Science",
	"Mathematics",
	"Psychology",
	"Climate Change",
	"Artificial Intelligence",
	"Sustainable Energy",
	"Global Health",
]


@router.get("")
def list_subjects():
	return {"subjects": SUBJECTS}
