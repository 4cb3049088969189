"""Fixed label vocabularies used by the decision engine (matched case-insensitively)."""

ANIMAL_LABELS = (
    # dogs
    "Dog", "Dogs", "Puppy", "Puppies", "Canine", "Canines", "Hound", "Hounds",
    "Terrier", "Bulldog", "Labrador", "German Shepherd", "Poodle", "Golden Retriever",
    "Beagle", "Rottweiler", "Boxer", "Dachshund", "Siberian Husky", "Border Collie",
    "Chihuahua", "Shih Tzu", "Yorkshire Terrier", "Great Dane", "Mastiff",
    # cats
    "Cat", "Cats", "Kitten", "Kittens", "Feline", "Felines", "Persian", "Siamese",
    "Maine Coon", "Tabby", "British Shorthair", "Ragdoll", "Bengal", "Scottish Fold",
    "Sphynx", "Russian Blue", "American Shorthair",
    # birds
    "Bird", "Birds", "Parrot", "Parrots", "Pigeon", "Pigeons", "Sparrow", "Sparrows",
    "Crow", "Crows", "Eagle", "Eagles", "Owl", "Owls", "Hawk", "Hawks",
    "Chicken", "Chickens", "Rooster", "Hen", "Duck", "Ducks", "Goose", "Geese",
    "Turkey", "Turkeys", "Peacock", "Peacocks", "Flamingo", "Flamingos",
    # aquatic
    "Fish", "Fishes", "Aquarium", "Goldfish", "Tropical Fish", "Shark", "Sharks",
    "Dolphin", "Dolphins", "Whale", "Whales", "Seal", "Seals", "Sea Lion",
    # large animals
    "Horse", "Horses", "Pony", "Ponies", "Donkey", "Donkeys", "Mule", "Mules",
    "Cow", "Cows", "Bull", "Bulls", "Buffalo", "Buffaloes", "Cattle", "Livestock",
    "Goat", "Goats", "Sheep", "Lambs", "Lamb", "Ram", "Rams", "Pig", "Pigs", "Piglet",
    # small animals
    "Rabbit", "Rabbits", "Bunny", "Bunnies", "Hamster", "Hamsters", "Guinea Pig",
    "Gerbil", "Gerbils", "Mouse", "Mice", "Rat", "Rats", "Squirrel", "Squirrels",
    "Chipmunk", "Chipmunks",
    # reptiles
    "Reptile", "Reptiles", "Snake", "Snakes", "Lizard", "Lizards", "Turtle", "Turtles",
    "Tortoise", "Crocodile", "Crocodiles", "Alligator", "Alligators", "Gecko", "Geckos",
    "Iguana", "Iguanas", "Chameleon", "Chameleons",
    # insects
    "Insect", "Insects", "Spider", "Spiders", "Butterfly", "Butterflies", "Bee", "Bees",
    "Wasp", "Wasps", "Ant", "Ants", "Beetle", "Beetles", "Moth", "Moths",
    # wild animals
    "Monkey", "Monkeys", "Ape", "Apes", "Chimpanzee", "Chimpanzees", "Gorilla", "Gorillas",
    "Elephant", "Elephants", "Tiger", "Tigers", "Lion", "Lions", "Bear", "Bears",
    "Deer", "Wolf", "Wolves", "Fox", "Foxes", "Zebra", "Zebras", "Giraffe", "Giraffes",
    "Hippopotamus", "Rhinoceros", "Kangaroo", "Kangaroos",
    # general
    "Pet", "Pets", "Animal", "Animals", "Wildlife", "Mammal", "Mammals", "Domestic Animal",
)

PROPERTY_LABELS = (
    "House", "Building", "Room", "Interior", "Exterior", "Garden", "Kitchen",
    "Bedroom", "Bathroom", "Living Room", "Property", "Real Estate",
    "Architecture", "Home", "Apartment", "Floor", "Wall", "Ceiling",
    "Door", "Window", "Furniture", "Land", "Plot", "Balcony", "Terrace",
    "Pool", "Garage", "Driveway", "Yard", "Patio", "Stairs", "Lobby",
    "Hall", "Office", "Commercial", "Residential", "Construction", "Structure",
)

# user-facing copy keyed by reason code
MESSAGES = {
    "approved": "Image approved successfully.",
    "adult_content": "This image contains inappropriate content and cannot be uploaded.",
    "racy_content": "This image contains suggestive content and cannot be uploaded.",
    "violence_content": "This image contains violent content and cannot be uploaded.",
    "medical_content": "This image contains graphic medical content and cannot be uploaded.",
    "animal_detected": "You have uploaded an image with animal appearance ({animal_name}). Please upload only property images without any animals or pets.",
    "borderline": "This image needs a manual check before it can be published. Under review.",
    "blur_detected": "You have uploaded a blurry image. Please upload a clear and sharp photo.",
    "low_quality": "You have uploaded a low quality image. Your image is {width}x{height} pixels. Minimum required is {min_width}x{min_height} pixels.",
    "file_too_large": "Image file is too large. Maximum size is {max_mb}MB.",
    "invalid_type": "Invalid file type. Please upload JPG, PNG, or WebP images only.",
    "invalid_image": "File is not a valid image.",
}

def get_message(code: str, **replacements: object) -> str:
    message = MESSAGES.get(code, "An error occurred.")
    for key, value in replacements.items():
        message = message.replace("{" + key + "}", str(value))
    return message
