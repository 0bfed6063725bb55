"""Built-in challenge catalog."""

from typing import Optional

from ..errors import CatalogError
from .types import Challenge, Difficulty


def _program(*body: str) -> str:
    """Wrap statements in a C# console program skeleton."""
    lines = ["using System;", "", "class Program", "{", "    static void Main(string[] args)", "    {"]
    lines.extend(f"        {line}" if line else "" for line in body)
    lines.extend(["    }", "}"])
    return "\n".join(lines)


def _starter(*comments: str) -> str:
    return _program(*(f"// {comment}" for comment in comments))


BUILTIN_CHALLENGES = [
    Challenge(
        id="1.1",
        title="Volume of Sphere",
        description=(
            "Create a C# program that calculates the volume of a sphere. Use the formula "
            "V = (4/3) * π * r³, where r is the radius. Print the volume with 2 decimal places."
        ),
        page=3,
        starter_code=_starter(
            "Your code here to calculate the volume of a sphere",
            "Ask the user to enter the radius",
            "Calculate the volume",
            "Display the result",
        ),
        hint=(
            "Remember to convert user input from string to double using Convert.ToDouble() "
            "or double.Parse(), and use Math.PI and Math.Pow() for calculations."
        ),
        solution=_program(
            'Console.Write("Enter the radius of the sphere: ");',
            "double radius = Convert.ToDouble(Console.ReadLine());",
            "",
            "double volume = (4.0/3.0) * Math.PI * Math.Pow(radius, 3);",
            "",
            'Console.WriteLine($"The volume of a sphere with radius {radius} is {volume:F2} cubic units.");',
        ),
        test_inputs=("5", "2.5", "10"),
    ),
    Challenge(
        id="1.2",
        title="Temp Conversion",
        description=(
            "Write a C# program that converts temperature from Celsius to Fahrenheit and vice "
            "versa. Use the formulas: F = (C * 9/5) + 32 and C = (F - 32) * 5/9. Option 1 "
            "converts Celsius to Fahrenheit, option 2 the other way."
        ),
        page=4,
        starter_code=_starter(
            "Write code to convert between Celsius and Fahrenheit",
            "Ask the user which conversion they want to perform",
            "Get the temperature value",
            "Perform conversion and display result",
        ),
        hint=(
            "Use a menu system with Console.ReadLine() to determine which conversion the user "
            "wants to perform. Remember to format the output to show only 2 decimal places."
        ),
        solution=_program(
            'Console.WriteLine("1. Celsius to Fahrenheit");',
            'Console.WriteLine("2. Fahrenheit to Celsius");',
            'Console.Write("Enter your choice (1 or 2): ");',
            "int choice = Convert.ToInt32(Console.ReadLine());",
            "if (choice == 1)",
            "{",
            '    Console.Write("Enter temperature in Celsius: ");',
            "    double celsius = Convert.ToDouble(Console.ReadLine());",
            '    Console.WriteLine($"{(celsius * 9/5) + 32:F2}°F");',
            "}",
            "else if (choice == 2)",
            "{",
            '    Console.Write("Enter temperature in Fahrenheit: ");',
            "    double fahrenheit = Convert.ToDouble(Console.ReadLine());",
            '    Console.WriteLine($"{(fahrenheit - 32) * 5/9:F2}°C");',
            "}",
            "else",
            "{",
            '    Console.WriteLine("Invalid choice!");',
            "}",
        ),
        test_inputs=("1\n25", "2\n98.6", "3"),
    ),
    Challenge(
        id="1.3",
        title="Peso-Dollar Conversion",
        description=(
            "Create a C# program that converts between Philippine Pesos and US Dollars. Use "
            "1 PHP = 0.018 USD and 1 USD = 56 PHP. Option 1 converts PHP to USD, option 2 USD "
            "to PHP. Print amounts with 2 decimals followed by the currency code."
        ),
        page=5,
        starter_code=_starter(
            "Set the exchange rates",
            "Create a menu for PHP to USD or USD to PHP conversion",
            "Get user input and perform the conversion",
            "Display the result with appropriate formatting",
        ),
        hint=(
            "Define a constant for the exchange rate. Use string formatting to display currency "
            "values with 2 decimal places. Consider using the '$' string interpolation feature."
        ),
        solution=_program(
            "const double phpToUsdRate = 0.018;",
            "const double usdToPhpRate = 56.0;",
            'Console.Write("1. PHP to USD, 2. USD to PHP: ");',
            "int choice = Convert.ToInt32(Console.ReadLine());",
            "if (choice == 1)",
            "{",
            '    Console.Write("Enter amount in PHP: ");',
            "    double php = Convert.ToDouble(Console.ReadLine());",
            '    Console.WriteLine($"{php:F2} PHP = {php * phpToUsdRate:F2} USD");',
            "}",
            "else if (choice == 2)",
            "{",
            '    Console.Write("Enter amount in USD: ");',
            "    double usd = Convert.ToDouble(Console.ReadLine());",
            '    Console.WriteLine($"{usd:F2} USD = {usd * usdToPhpRate:F2} PHP");',
            "}",
            "else",
            "{",
            '    Console.WriteLine("Invalid choice!");',
            "}",
        ),
        test_inputs=("1\n1000", "2\n25"),
    ),
    Challenge(
        id="1.4",
        title="Measurement Conversion",
        description=(
            "Write a C# program that converts between units of measurement: 1. meters to feet, "
            "2. kilograms to pounds, 3. liters to gallons. Print the result with 2 decimals "
            "followed by the target unit name."
        ),
        page=6,
        starter_code=_starter(
            "Create a menu of conversion options",
            "Get user input for which conversion to perform",
            "Implement the 3 measurement conversions",
            "Display results with appropriate units",
        ),
        hint=(
            "Common conversion factors: 1 meter = 3.28084 feet, 1 kilogram = 2.20462 pounds, "
            "1 liter = 0.264172 gallons. Use switch statements to handle the different options."
        ),
        solution=_program(
            'Console.Write("Enter your choice (1-3): ");',
            "int choice = Convert.ToInt32(Console.ReadLine());",
            "switch (choice)",
            "{",
            "    case 1:",
            '        Console.Write("Enter length in meters: ");',
            '        Console.WriteLine($"{Convert.ToDouble(Console.ReadLine()) * 3.28084:F2} feet");',
            "        break;",
            "    case 2:",
            '        Console.Write("Enter weight in kilograms: ");',
            '        Console.WriteLine($"{Convert.ToDouble(Console.ReadLine()) * 2.20462:F2} pounds");',
            "        break;",
            "    case 3:",
            '        Console.Write("Enter volume in liters: ");',
            '        Console.WriteLine($"{Convert.ToDouble(Console.ReadLine()) * 0.264172:F2} gallons");',
            "        break;",
            "    default:",
            '        Console.WriteLine("Invalid choice!");',
            "        break;",
            "}",
        ),
        test_inputs=("1\n10", "2\n70", "3\n4"),
    ),
    Challenge(
        id="1.5",
        title="Two Variables",
        description=(
            "Create a C# program that reads two numbers and displays their sum, difference, "
            "product and quotient. Show the quotient with 2 decimals and handle division by zero."
        ),
        page=7,
        starter_code=_starter(
            "Read two variables from the user",
            "Perform and display the results of various operations",
            "Remember to handle potential division by zero",
        ),
        hint=(
            "Use descriptive variable names. When dividing, check if the divisor is zero to "
            "avoid runtime errors. Use Console.WriteLine() to display results of each operation."
        ),
        solution=_program(
            'Console.Write("Enter first number: ");',
            "double num1 = Convert.ToDouble(Console.ReadLine());",
            'Console.Write("Enter second number: ");',
            "double num2 = Convert.ToDouble(Console.ReadLine());",
            'Console.WriteLine($"Addition: {num1 + num2}");',
            'Console.WriteLine($"Subtraction: {num1 - num2}");',
            'Console.WriteLine($"Multiplication: {num1 * num2}");',
            "if (num2 != 0)",
            '    Console.WriteLine($"Division: {num1 / num2:F2}");',
            "else",
            '    Console.WriteLine("Division by zero is not allowed.");',
        ),
        test_inputs=("10\n4", "7\n0"),
    ),
    Challenge(
        id="1.6",
        title="Circumference of a circle",
        description=(
            "Write a C# program that calculates the circumference of a circle. Use the formula "
            "C = 2πr, where r is the radius. Print the result with 2 decimal places."
        ),
        page=8,
        starter_code=_starter(
            "Get the radius from the user",
            "Calculate the circumference",
            "Display the result",
        ),
        hint=(
            "Use Math.PI for the value of π. Format the output to display only two decimal "
            "places using the :F2 format specifier in string interpolation."
        ),
        solution=_program(
            'Console.Write("Enter the radius of the circle: ");',
            "double radius = Convert.ToDouble(Console.ReadLine());",
            "double circumference = 2 * Math.PI * radius;",
            'Console.WriteLine($"The circumference is {circumference:F2} units.");',
        ),
        test_inputs=("7", "1.5"),
    ),
    Challenge(
        id="1.7",
        title="Three variables declaration",
        description=(
            "Create a C# program that uses a string, an int and a double. Read a whole number "
            "as text, convert it to an int, divide it by 2.0 into a double and print that "
            "double with 2 decimal places."
        ),
        page=9,
        starter_code=_starter(
            "Declare variables of different types (int, double, string)",
            "Perform type conversions between them",
            "Display the converted value",
        ),
        hint=(
            "Use Convert.ToInt32() or int.Parse() to turn the string into an int. Dividing by "
            "2.0 instead of 2 keeps the result a double."
        ),
        solution=_program(
            'Console.Write("Enter a whole number: ");',
            "string text = Console.ReadLine();",
            "int whole = Convert.ToInt32(text);",
            "double half = whole / 2.0;",
            'Console.WriteLine($"Half of {whole} is {half:F2}");',
        ),
        test_inputs=("42", "7"),
    ),
    Challenge(
        id="1.8",
        title="Purchase Price",
        description=(
            "Write a C# program that calculates the final purchase price including tax. Ask "
            "the user for the item price and tax rate (%), then display the total with 2 decimals."
        ),
        page=10,
        starter_code=_starter(
            "Get item price and tax rate from the user",
            "Calculate the tax amount",
            "Calculate and display the total price",
        ),
        hint=(
            "Tax amount is calculated as price * (taxRate / 100). The final price is the "
            "original price plus the tax amount."
        ),
        solution=_program(
            'Console.Write("Enter the item price: $");',
            "double price = Convert.ToDouble(Console.ReadLine());",
            'Console.Write("Enter the tax rate (%): ");',
            "double taxRate = Convert.ToDouble(Console.ReadLine());",
            "double taxAmount = price * (taxRate / 100);",
            'Console.WriteLine($"Total price: ${price + taxAmount:F2}");',
        ),
        test_inputs=("100\n12", "19.99\n7.5"),
    ),
    Challenge(
        id="1.9",
        title="Economic order quantity",
        description=(
            "Create a C# program that calculates the Economic Order Quantity using "
            "EOQ = sqrt((2 * D * S) / H), where D is annual demand, S is order cost and H is "
            "holding cost. Print the EOQ with 2 decimals, or 'Error: All values must be "
            "positive.' for non-positive input."
        ),
        page=11,
        difficulty=Difficulty.MEDIUM,
        starter_code=_starter(
            "Get the annual demand, order cost, and holding cost from the user",
            "Calculate the EOQ using the formula",
            "Display the result",
        ),
        hint=(
            "Use Math.Sqrt() to calculate the square root. Validate that the input values "
            "are positive before performing the calculation."
        ),
        solution=_program(
            'Console.Write("Enter annual demand (D): ");',
            "double demand = Convert.ToDouble(Console.ReadLine());",
            'Console.Write("Enter order cost (S): $");',
            "double orderCost = Convert.ToDouble(Console.ReadLine());",
            'Console.Write("Enter annual holding cost per unit (H): $");',
            "double holdingCost = Convert.ToDouble(Console.ReadLine());",
            "if (demand <= 0 || orderCost <= 0 || holdingCost <= 0)",
            '    Console.WriteLine("Error: All values must be positive.");',
            "else",
            '    Console.WriteLine($"EOQ: {Math.Sqrt((2 * demand * orderCost) / holdingCost):F2} units");',
        ),
        test_inputs=("1000\n50\n2", "0\n10\n1"),
        xp_reward=30,
        coin_reward=8,
    ),
    Challenge(
        id="1.10",
        title="Radius of a circle",
        description=(
            "Write a C# program that calculates the radius of a circle from its area using "
            "r = sqrt(A / π). Print the radius with 4 decimal places, or 'Error: Area must be "
            "positive.' for non-positive input."
        ),
        page=12,
        difficulty=Difficulty.MEDIUM,
        starter_code=_starter(
            "Get the area of the circle from the user",
            "Calculate the radius",
            "Display the result",
        ),
        hint=(
            "Use Math.PI for the value of π and Math.Sqrt() for the square root calculation. "
            "Make sure to handle negative input values appropriately."
        ),
        solution=_program(
            'Console.Write("Enter the area of the circle: ");',
            "double area = Convert.ToDouble(Console.ReadLine());",
            "if (area <= 0)",
            '    Console.WriteLine("Error: Area must be positive.");',
            "else",
            '    Console.WriteLine($"Radius: {Math.Sqrt(area / Math.PI):F4} units.");',
        ),
        test_inputs=("50", "-3"),
        xp_reward=30,
        coin_reward=8,
    ),
]


def get_challenges(
    module: Optional[str] = None,
    difficulty: Optional[str] = None,
) -> list[Challenge]:
    """Get catalog challenges in order.

    Args:
        module: Filter by module grouping
        difficulty: Filter by difficulty

    Returns:
        List of matching challenges
    """
    challenges = BUILTIN_CHALLENGES.copy()

    if module:
        challenges = [c for c in challenges if c.module == module]
    if difficulty:
        challenges = [c for c in challenges if c.difficulty.value == difficulty]

    return challenges


def get_challenge_by_id(challenge_id: str) -> Challenge:
    """Get a specific challenge by ID."""
    for challenge in BUILTIN_CHALLENGES:
        if challenge.id == challenge_id:
            return challenge
    raise CatalogError(f"Unknown challenge: {challenge_id}")
